# -*- coding: utf-8 -*-
"""JSON configuration on disk for HelloWords.

The file holds only overrides; missing keys fall back to
:data:`DEFAULT_CONFIG`. A file that cannot be parsed is ignored with a
warning rather than preventing the app from starting.
"""
from __future__ import annotations

from typing import Any, Dict
from pathlib import Path
import json
import logging
import os

logger = logging.getLogger(__name__)

APP_NAME = "hellowords"
CONFIG_DIR_ENV = "HELLOWORDS_CONFIG_DIR"

DEFAULT_CONFIG: Dict[str, Any] = {
    "embedding_api_base": "https://api.openai.com/v1",
    "embedding_model": "text-embedding-3-small",
    "embedding_timeout": 30.0,
    "match_threshold": 0.7,
    "match_count": 5,
    # Coordinates used for reverse geocoding when location saving is on
    "latitude": None,
    "longitude": None,
    "location_timeout": 5.0,
}


def _config_dir() -> Path:
    """Directory holding config.json, local storage and logs."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    if os.name == "nt":
        root = os.environ.get("APPDATA") or os.path.expanduser("~\\AppData\\Roaming")
    else:
        root = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return Path(root) / APP_NAME


def _config_path() -> Path:
    return _config_dir() / "config.json"


def _read_overrides(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Config at %s unreadable (%s); using defaults", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config at %s is not a JSON object; using defaults", path)
        return {}
    return data


def load_config() -> Dict[str, Any]:
    """Defaults merged with the on-disk overrides.

    Writes the defaults out on first run so there is a file to edit.
    """
    path = _config_path()
    if not path.exists():
        save_config(DEFAULT_CONFIG)
        return dict(DEFAULT_CONFIG)
    cfg = dict(DEFAULT_CONFIG)
    cfg.update(_read_overrides(path))
    return cfg


def save_config(cfg: Dict[str, Any]) -> None:
    _config_dir().mkdir(parents=True, exist_ok=True)
    with _config_path().open("w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)
