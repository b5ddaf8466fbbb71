"""Tests for hellowords.config: defaults, overrides and unreadable files."""

import json
import logging

from hellowords import config


def test_first_load_writes_defaults():
    cfg = config.load_config()
    assert cfg == config.DEFAULT_CONFIG
    assert json.loads(config._config_path().read_text(encoding="utf-8")) == config.DEFAULT_CONFIG


def test_file_overrides_are_merged_over_defaults():
    config.save_config({"match_threshold": 0.5, "latitude": 38.7})
    cfg = config.load_config()
    assert cfg["match_threshold"] == 0.5
    assert cfg["latitude"] == 38.7
    assert cfg["match_count"] == config.DEFAULT_CONFIG["match_count"]


def test_returned_config_does_not_alias_defaults():
    cfg = config.load_config()
    cfg["match_count"] = 99
    assert config.load_config()["match_count"] == 5


def test_corrupt_file_falls_back_to_defaults(caplog):
    path = config._config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="hellowords.config"):
        cfg = config.load_config()

    assert cfg == config.DEFAULT_CONFIG
    assert "unreadable" in caplog.text
    # The broken file is left for the user to fix
    assert path.read_text(encoding="utf-8") == "{not json"


def test_non_object_file_falls_back_to_defaults():
    config.save_config(["not", "an", "object"])
    assert config.load_config() == config.DEFAULT_CONFIG


def test_config_dir_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv(config.CONFIG_DIR_ENV, str(tmp_path / "elsewhere"))
    assert config._config_path() == tmp_path / "elsewhere" / "config.json"
