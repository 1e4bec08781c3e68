"""Tests for configuration loading and data paths."""

import pytest

from matchroom.config_loader import load_and_validate_config, load_config, validate_config
from matchroom.exceptions import ConfigError
from matchroom.paths import get_data_dir, get_default_db_path


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_load_full_config(tmp_path):
    path = _write(
        tmp_path,
        "database_path: data/room.sqlite\n"
        "matches_per_player: 2\n"
        "auto_advance: false\n"
        "random_seed: 13\n"
        "log_level: debug\n",
    )

    cfg = load_and_validate_config(path)

    assert cfg == {
        "database_path": "data/room.sqlite",
        "matches_per_player": 2,
        "auto_advance": False,
        "random_seed": 13,
        "log_level": "DEBUG",
    }


def test_defaults_use_data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("MATCHROOM_HOME", str(tmp_path / "home"))

    cfg = load_and_validate_config()

    assert cfg["database_path"] == str(tmp_path / "home" / "matchroom.sqlite")
    assert cfg["matches_per_player"] == 1
    assert cfg["auto_advance"] is True
    assert cfg["random_seed"] is None
    assert cfg["log_level"] == "INFO"


def test_data_dir_is_created(tmp_path, monkeypatch):
    monkeypatch.setenv("MATCHROOM_HOME", str(tmp_path / "nested" / "dir"))

    assert get_data_dir().is_dir()
    assert get_default_db_path().name == "matchroom.sqlite"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(str(tmp_path / "nope.yaml"))


def test_empty_and_invalid_yaml(tmp_path):
    with pytest.raises(ConfigError, match="empty"):
        load_config(_write(tmp_path, ""))
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(_write(tmp_path, "key: [unclosed\n"))
    with pytest.raises(ConfigError, match="mapping"):
        load_config(_write(tmp_path, "- a\n- b\n"))


@pytest.mark.parametrize(
    "config",
    [
        {"database_path": ""},
        {"matches_per_player": 0},
        {"matches_per_player": "2"},
        {"matches_per_player": True},
        {"auto_advance": "yes"},
        {"random_seed": "abc"},
        {"log_level": "LOUD"},
    ],
)
def test_invalid_values(config, tmp_path, monkeypatch):
    monkeypatch.setenv("MATCHROOM_HOME", str(tmp_path))
    with pytest.raises(ConfigError):
        validate_config(config)
