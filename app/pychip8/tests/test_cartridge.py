from returns.result import Failure, Success

from pychip8.cartridge import Cartridge
from pychip8.exception import RomNotFound, RomTooLarge, RomUnreadable


def test_from_bytes():
    result = Cartridge.from_bytes(bytes([0x00, 0xE0]))
    assert isinstance(result, Success)
    cart = result.unwrap()
    assert cart.ROM.tolist() == [0x00, 0xE0]
    assert cart.name == "<memory>"
    assert len(cart) == 2


def test_largest_rom_fits():
    result = Cartridge.from_bytes(bytes(Cartridge.MAX_SIZE))
    assert isinstance(result, Success)
    assert len(result.unwrap()) == 0xE00


def test_rom_too_large():
    result = Cartridge.from_bytes(bytes(Cartridge.MAX_SIZE + 1))
    assert isinstance(result, Failure)
    assert isinstance(result.failure(), RomTooLarge)


def test_rom_not_bytes():
    result = Cartridge.from_bytes("00E0")  # type: ignore[arg-type]
    assert isinstance(result, Failure)
    assert isinstance(result.failure(), RomUnreadable)


def test_empty_rom_is_accepted():
    assert isinstance(Cartridge.from_bytes(b""), Success)


def test_from_file(tmp_path):
    rom = tmp_path / "maze.ch8"
    rom.write_bytes(bytes([0x12, 0x00]))

    cart = Cartridge.from_file(rom).unwrap()
    assert cart.file == str(rom)
    assert cart.name == "maze.ch8"
    assert cart.ROM.tolist() == [0x12, 0x00]


def test_from_file_missing(tmp_path):
    result = Cartridge.from_file(tmp_path / "missing.ch8")
    assert isinstance(result, Failure)
    assert isinstance(result.failure(), RomNotFound)


def test_from_file_directory(tmp_path):
    result = Cartridge.from_file(tmp_path)
    assert isinstance(result, Failure)
    assert isinstance(result.failure(), RomUnreadable)


def test_from_file_too_large(tmp_path):
    rom = tmp_path / "big.ch8"
    rom.write_bytes(bytes(0x1000))
    result = Cartridge.from_file(rom)
    assert isinstance(result.failure(), RomTooLarge)

