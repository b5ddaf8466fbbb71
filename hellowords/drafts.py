# -*- coding: utf-8 -*-
"""Local mirroring of the unsaved composition."""
from __future__ import annotations

from typing import Callable, Optional
import logging
import time

from .storage import DRAFT_KEY, LAST_UNLOAD_KEY, LocalStorage

logger = logging.getLogger(__name__)

RELOAD_WINDOW_SECONDS = 1.0


class ReloadDetector:
    """Decides whether this start is a reload of the previous session."""

    def should_clear_draft_on_load(self) -> bool:
        raise NotImplementedError


class TeardownTimingDetector(ReloadDetector):
    """Treat a start within *window* seconds of the last teardown as a reload.

    A fast close-and-reopen is indistinguishable from a reload here.
    """

    def __init__(
        self,
        storage: LocalStorage,
        clock: Callable[[], float] = time.time,
        window: float = RELOAD_WINDOW_SECONDS,
    ) -> None:
        self.storage = storage
        self.clock = clock
        self.window = window

    def mark_teardown(self) -> None:
        self.storage.set(LAST_UNLOAD_KEY, self.clock())

    def should_clear_draft_on_load(self) -> bool:
        last = self.storage.get(LAST_UNLOAD_KEY)
        if last is None:
            return False
        self.storage.remove(LAST_UNLOAD_KEY)
        try:
            elapsed = self.clock() - float(last)
        except (TypeError, ValueError):
            return False
        return elapsed < self.window


class DraftStore:
    """Mirrors every edit to the draft slot, without debounce."""

    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage

    def update(self, text: str) -> None:
        if text.strip():
            self.storage.set(DRAFT_KEY, text)
        else:
            self.storage.remove(DRAFT_KEY)

    def load(self) -> Optional[str]:
        text = self.storage.get(DRAFT_KEY)
        if isinstance(text, str) and text.strip():
            return text
        return None

    def clear(self) -> None:
        self.storage.remove(DRAFT_KEY)

    def restore(self, detector: ReloadDetector) -> Optional[str]:
        """Draft to show on start, or None if it was dropped as a reload."""
        if detector.should_clear_draft_on_load():
            self.clear()
            logger.info("Cleared draft on reload")
            return None
        draft = self.load()
        if draft is not None:
            logger.info("Loaded draft (%d characters)", len(draft))
        return draft
