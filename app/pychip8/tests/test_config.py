from pychip8.util.config import DEFAULT_CONFIG, load_config


def test_missing_file_returns_defaults(tmp_path):
    cfg = load_config(tmp_path / "config.toml")
    assert cfg == DEFAULT_CONFIG
    assert cfg is not DEFAULT_CONFIG

    cfg["machine"]["clock_hz"] = 1
    assert DEFAULT_CONFIG["machine"]["clock_hz"] == 600


def test_overrides_are_merged(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        "[general]\n"
        "scale = 10\n"
        "[machine]\n"
        "clock_hz = 1200\n"
        "stack_depth = 16\n"
        "[keyboard]\n"
        "a = \"M\"\n",
        encoding="utf-8",
    )

    cfg = load_config(path)
    assert cfg["general"]["scale"] == 10
    assert cfg["general"]["fps"] == 60
    assert cfg["machine"]["clock_hz"] == 1200
    assert cfg["machine"]["stack_depth"] == 16
    assert cfg["keyboard"]["A"] == "M"
    assert cfg["keyboard"]["0"] == "X"


def test_invalid_values_fall_back_to_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[machine]\nstack_depth = 40\n", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG


def test_unknown_keypad_digit_is_rejected(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[keyboard]\nG = \"M\"\n", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG


def test_broken_toml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[machine\nwidth = ", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG
