#!/usr/bin/env python3
import os
import sys
from pathlib import Path
from typing import List, Optional

os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import numpy as np
import pygame
from numpy.typing import NDArray
from returns.result import Failure
from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.traceback import install

from pychip8.__version__ import __version_string__ as __version__
from pychip8.backend.Audio import Audio
from pychip8.backend.Control import Control
from pychip8.backend.Screen import Screen
from pychip8.cartridge import Cartridge
from pychip8.emulator import Emulator, RunState
from pychip8.exception import Chip8Error
from pychip8.logger import console, setup_logging
from pychip8.logger import log as _log
from pychip8.resources import roms_path
from pychip8.util.config import Config, load_config

USAGE = "Usage: pychip8 <rom.ch8> [--debug] [--trace] [--strict]"
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def _print_controls() -> None:
    table = Table(title="Controls", box=box.ROUNDED, border_style="cyan")
    table.add_column("Key", justify="center")
    table.add_column("Action", justify="left")
    table.add_row("1 2 3 4 / Q W E R / A S D F / Z X C V", "Keypad 1 2 3 C / 4 5 6 D / 7 8 9 E / A 0 B F")
    table.add_row("Space", "Pause/Resume")
    table.add_row("F5", "Reset")
    table.add_row("ESC", "Quit")
    console.print(table)


def run(emu: Emulator, cfg: Config) -> int:
    """Window/event loop. Returns the process exit code."""
    pygame.init()
    try:
        screen = Screen(
            emu.width,
            emu.height,
            scale=cfg["general"]["scale"],
            fg_color=cfg["general"]["fg_color"],
            bg_color=cfg["general"]["bg_color"],
            pixel_outlines=cfg["general"]["pixel_outlines"],
        )
        audio = Audio(cfg["audio"]["frequency"], cfg["audio"]["volume"]) if cfg["audio"]["enable"] else None
        user_input = Control(cfg["keyboard"])
        clock = pygame.time.Clock()
        screen.set_caption(emu.cartridge.name)
        screen.clear()

        @emu.on("reset")
        def vm_reset(machine) -> None:
            screen.set_caption(emu.cartridge.name)
            if audio is not None:
                audio.stop()

        @emu.on("frame_complete")
        def vm_frame(frame: NDArray[np.bool_], delay_timer: int, sound_timer: int) -> None:
            screen.draw(frame)
            if audio is not None:
                audio.update(sound_timer)

        while emu.State is not RunState.Halted:
            events = pygame.event.get()
            for event in events:
                if event.type == pygame.QUIT:
                    emu.Quit()
                elif event.type == pygame.KEYDOWN and event.key not in user_input.KEY_MAPPING:
                    # keypad keys never double as hotkeys
                    if event.key == pygame.K_ESCAPE:
                        emu.Quit()
                    elif event.key == pygame.K_SPACE:
                        paused = emu.TogglePause() is RunState.Paused
                        console.print(f"[bold yellow]{'Paused' if paused else 'Resumed'}[/bold yellow]")
                        screen.set_caption(emu.cartridge.name, paused)
                        if audio is not None and paused:
                            audio.stop()
                    elif event.key == pygame.K_F5:
                        console.print("[bold red]Resetting emulator...[/bold red]")
                        emu.Reset()

            if emu.State is RunState.Halted:
                break

            user_input.update(events)
            emu.Input(user_input.state)

            try:
                emu.frame()
            except Chip8Error as e:
                _log.error(f"Emulation stopped: {e}", exc_info=(type(e), e, e.__traceback__))
                return EXIT_ERROR

            clock.tick(cfg["general"]["fps"])
    finally:
        pygame.quit()

    console.print(f"\n[bold cyan]Emulator closed.[/bold cyan] Ran [green]{emu.frame_count}[/green] frames, [green]{emu.instruction_count}[/green] instructions.")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    flags = {a for a in argv if a.startswith("--")}
    positional = [a for a in argv if not a.startswith("--")]

    if not positional:
        console.print(f"[bold red]{USAGE}[/bold red]")
        return EXIT_USAGE

    debug_mode = "--debug" in flags or "--trace" in flags
    setup_logging(debug_mode)
    install(console=console, show_locals=debug_mode)

    cfg = load_config()
    rom_path = Path(positional[0])
    if not rom_path.exists() and (roms_path / rom_path).is_file():
        rom_path = roms_path / rom_path

    result = Cartridge.from_file(rom_path)
    if isinstance(result, Failure):
        error = result.failure()
        _log.error(f"{type(error).__name__}: {error}")
        return EXIT_ERROR

    machine_cfg = cfg["machine"]
    emu = Emulator(
        width=machine_cfg["width"],
        height=machine_cfg["height"],
        clock_hz=machine_cfg["clock_hz"],
        stack_depth=machine_cfg["stack_depth"],
    )
    emu.debug.HaltOn.UnknownOpcode = machine_cfg["strict"] or "--strict" in flags

    if "--trace" in flags:
        emu.debug.Logging = True

        @emu.on("tracelogger")
        def trace(line: str) -> None:
            _log.debug(line)

    emu.Load(result.unwrap())

    console.print(Panel.fit(f"[bold cyan]PyChip8 [red]{__version__}[/red][/]", border_style="bright_blue"))
    console.print(f"[green]Loaded:[/green] {rom_path}\n")
    _print_controls()

    return run(emu, cfg)


if __name__ == "__main__":
    sys.exit(main())
