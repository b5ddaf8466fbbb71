# -*- coding: utf-8 -*-
"""Local durable key-value slots.

A single JSON file next to the config holds the pending entry, the draft,
the location preference, the last teardown timestamp and the signed-in
session. Every mutation is written through immediately.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging
import os

from .config import _config_dir

logger = logging.getLogger(__name__)

PENDING_ENTRY_KEY = "pendingEntry"
DRAFT_KEY = "hellowords_draft"
LOCATION_ENABLED_KEY = "locationEnabled"
LAST_UNLOAD_KEY = "hellowords_last_unload"
AUTH_SESSION_KEY = "auth_session"


def default_storage_path() -> Path:
    return _config_dir() / "local_storage.json"


class LocalStorage:
    """JSON-file backed slot store with atomic write-through."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else default_storage_path()
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.warning("Local storage at %s unreadable; starting empty", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(self._data, f)
        os.replace(tmp, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._write()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._write()

    def __contains__(self, key: str) -> bool:
        return key in self._data

    # Location preference -------------------------------------------------

    @property
    def location_enabled(self) -> bool:
        return self.get(LOCATION_ENABLED_KEY) == "true"

    @location_enabled.setter
    def location_enabled(self, enabled: bool) -> None:
        self.set(LOCATION_ENABLED_KEY, "true" if enabled else "false")
