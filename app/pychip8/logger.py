import logging
from datetime import datetime
from pathlib import Path
from typing import Final, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from pychip8.resources import log_root

console: Final[Console] = Console()

time_format: Final[str] = "%Y-%m-%d %H:%M:%S"
log: Final[logging.Logger] = logging.getLogger("PyChip8")


class Chip8FileHandler(logging.Handler):
    def __init__(self, file_name: Union[str, Path]):
        super().__init__()
        self._file_name = Path(file_name)
        self._log_hold: list[logging.LogRecord] = []

    def _write_log_entry(self, log_entry: str) -> None:
        with open(self._file_name, "a", encoding="utf-8") as f:
            f.write(log_entry + "\n")

    def emit(self, record: logging.LogRecord) -> None:
        self.acquire()
        try:
            # retry records that failed to land last time before the new one
            pending, self._log_hold = self._log_hold, []
            for held in pending + [record]:
                try:
                    self._write_log_entry(self.format(held))
                except OSError:
                    self._log_hold.append(held)
        finally:
            self.release()


def get_time() -> str:
    return datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


def setup_logging(debug_mode: bool = False, log_dir: Optional[Path] = None) -> Path:
    """
    Attach the console and file handlers to the PyChip8 logger.

    Returns the path of the log file for this run.
    """
    log_dir = log_root if log_dir is None else Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"pychip8_{get_time()}.log"

    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        rich_tracebacks=True,
        show_path=debug_mode,
        enable_link_path=True,
        tracebacks_show_locals=debug_mode,
        show_level=False,
        console=console,
    )
    file_handler = Chip8FileHandler(log_file)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt=time_format)
    )

    log.addHandler(rich_handler)
    log.addHandler(file_handler)
    log.setLevel(logging.DEBUG if debug_mode else logging.INFO)
    log.propagate = False
    return log_file
