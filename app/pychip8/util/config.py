from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, TypedDict, Union

import tomllib

from pychip8.logger import log as _log
from pychip8.resources import config_file


class GeneralConfig(TypedDict):
    fps: int
    scale: int
    pixel_outlines: bool
    fg_color: str
    bg_color: str


class MachineConfig(TypedDict):
    width: int
    height: int
    clock_hz: int
    stack_depth: int
    strict: bool


class AudioConfig(TypedDict):
    enable: bool
    frequency: int
    volume: float


class Config(TypedDict):
    general: GeneralConfig
    machine: MachineConfig
    audio: AudioConfig
    keyboard: Dict[str, str]  # keypad digit "0".."F" -> host key name


DEFAULT_CONFIG: Config = {
    "general": {
        "fps": 60,
        "scale": 20,
        "pixel_outlines": True,
        "fg_color": "#FFFFFF",
        "bg_color": "#000000",
    },
    "machine": {"width": 64, "height": 32, "clock_hz": 600, "stack_depth": 12, "strict": False},
    "audio": {"enable": True, "frequency": 440, "volume": 0.25},
    # COSMAC VIP keypad laid over the left side of a QWERTY keyboard
    "keyboard": {
        "1": "1", "2": "2", "3": "3", "C": "4",
        "4": "Q", "5": "W", "6": "E", "D": "R",
        "7": "A", "8": "S", "9": "D", "E": "F",
        "A": "Z", "0": "X", "B": "C", "F": "V",
    },
}

KEYPAD_DIGITS = frozenset("0123456789ABCDEF")


def _deep_merge(
    target: MutableMapping[str, Any],
    overrides: Mapping[str, Any],
) -> MutableMapping[str, Any]:
    for key, value in overrides.items():
        if isinstance(target.get(key), dict) and isinstance(value, dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value
    return target


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate_config(cfg: Config) -> None:
    general = cfg["general"]
    for key in ("fps", "scale"):
        if not _is_positive_int(general[key]):
            raise ValueError(f"general.{key} must be a positive integer")
    if not isinstance(general["pixel_outlines"], bool):
        raise ValueError("general.pixel_outlines must be a boolean")
    for key in ("fg_color", "bg_color"):
        if not isinstance(general[key], str):
            raise ValueError(f"general.{key} must be a color string")

    machine = cfg["machine"]
    for key in ("width", "height", "clock_hz"):
        if not _is_positive_int(machine[key]):
            raise ValueError(f"machine.{key} must be a positive integer")
    if machine["width"] > 256 or machine["height"] > 256:
        raise ValueError("machine.width and machine.height must fit in a byte register")
    if not _is_positive_int(machine["stack_depth"]) or not 12 <= machine["stack_depth"] <= 16:
        raise ValueError("machine.stack_depth must be between 12 and 16")
    if not isinstance(machine["strict"], bool):
        raise ValueError("machine.strict must be a boolean")

    audio = cfg["audio"]
    if not isinstance(audio["enable"], bool):
        raise ValueError("audio.enable must be a boolean")
    if not _is_positive_int(audio["frequency"]):
        raise ValueError("audio.frequency must be a positive integer")
    if not isinstance(audio["volume"], (int, float)) or not 0 <= audio["volume"] <= 1:
        raise ValueError("audio.volume must be between 0 and 1")

    unknown = set(cfg["keyboard"]) - KEYPAD_DIGITS
    if unknown:
        raise ValueError(f"keyboard has unknown keypad digits: {sorted(unknown)}")


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    config_path = Path(path) if path is not None else config_file
    config = deepcopy(DEFAULT_CONFIG)
    if not config_path.exists():
        return config

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        if "keyboard" in data and isinstance(data["keyboard"], dict):
            data["keyboard"] = {str(k).upper(): v for k, v in data["keyboard"].items()}

        _deep_merge(config, data)
        _validate_config(config)

    except (OSError, tomllib.TOMLDecodeError, ValueError, TypeError, KeyError) as e:
        _log.error(f"Failed to load config {config_path}: {e}", exc_info=(type(e), e, e.__traceback__))
        return deepcopy(DEFAULT_CONFIG)

    return config
