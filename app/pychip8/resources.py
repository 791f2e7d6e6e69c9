from pathlib import Path
from typing import Final

root_path: Final[Path] = Path(".").resolve()
config_file: Final[Path] = root_path / "config.toml"
log_root: Final[Path] = root_path / "log"
roms_path: Final[Path] = root_path / "roms"
