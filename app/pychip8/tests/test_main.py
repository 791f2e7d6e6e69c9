import logging

import pytest

from pychip8 import main as main_module
from pychip8.logger import Chip8FileHandler, log, setup_logging


@pytest.fixture(autouse=True)
def no_log_files(monkeypatch):
    monkeypatch.setattr(main_module, "setup_logging", lambda debug_mode=False: None)


def test_missing_rom_argument_is_usage_error():
    assert main_module.main([]) == main_module.EXIT_USAGE
    assert main_module.main(["--debug"]) == main_module.EXIT_USAGE


def test_usage_error_writes_no_log(monkeypatch):
    calls = []
    monkeypatch.setattr(main_module, "setup_logging", lambda debug_mode=False: calls.append(debug_mode))
    assert main_module.main(["--trace"]) == main_module.EXIT_USAGE
    assert calls == []


def test_missing_rom_file(tmp_path):
    assert main_module.main([str(tmp_path / "missing.ch8")]) == main_module.EXIT_ERROR


def test_oversized_rom(tmp_path):
    rom = tmp_path / "big.ch8"
    rom.write_bytes(bytes(0xE01))
    assert main_module.main([str(rom), "--strict"]) == main_module.EXIT_ERROR


def test_loaded_rom_is_handed_to_the_window_loop(tmp_path, monkeypatch):
    rom = tmp_path / "ok.ch8"
    rom.write_bytes(bytes([0x00, 0xE0]))
    seen = {}

    def fake_run(emu, cfg):
        seen["emu"] = emu
        return main_module.EXIT_OK

    monkeypatch.setattr(main_module, "run", fake_run)
    assert main_module.main([str(rom), "--strict", "--trace"]) == main_module.EXIT_OK

    emu = seen["emu"]
    assert emu.cartridge.name == "ok.ch8"
    assert emu.debug.HaltOn.UnknownOpcode
    assert emu.debug.Logging


def test_setup_logging_writes_file(tmp_path):
    log_file = setup_logging(debug_mode=True, log_dir=tmp_path / "logs")
    try:
        assert log.level == logging.DEBUG
        assert sum(isinstance(h, Chip8FileHandler) for h in log.handlers) == 1

        log.info("hello from the log test")
        assert "hello from the log test" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(log.handlers):
            log.removeHandler(handler)
            handler.close()
        log.propagate = True
