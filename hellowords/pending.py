# -*- coding: utf-8 -*-
"""Reconciliation of an entry composed before sign-in completed.

The coordinator is a small state machine::

    IDLE --save_requested--> STAGED --auth_and_key_available--> FLUSHING
    FLUSHING --write ok--> IDLE
    FLUSHING --write failed--> STAGED

The staged text lives in a durable local slot so that it survives the
process restarting during sign-in. ``FLUSHING`` is entered before the
first await of a flush, so a trigger that fires again while a flush is in
flight sees ``FLUSHING`` and does nothing: one staged value produces at
most one store write.
"""
from __future__ import annotations

from typing import Optional, Set
import asyncio
import enum
import logging

from . import logic
from .auth import SIGNED_IN, AuthClient, AuthSession
from .crypto import KeySource, SessionKeys, session_keys
from .drafts import DraftStore
from .embeddings import EmbeddingClient
from .errors import AuthError, RemoteWriteError
from .location import NO_LOCATION, Locator
from .storage import PENDING_ENTRY_KEY, LocalStorage

logger = logging.getLogger(__name__)


class PendingState(enum.Enum):
    IDLE = "idle"
    STAGED = "staged"
    FLUSHING = "flushing"


class PendingEntryCoordinator:
    """Stages one entry while signed out and writes it once keys exist."""

    def __init__(
        self,
        storage: LocalStorage,
        auth: AuthClient,
        *,
        embedder: Optional[EmbeddingClient] = None,
        key_source: Optional[KeySource] = None,
        drafts: Optional[DraftStore] = None,
    ) -> None:
        self.storage = storage
        self.auth = auth
        self.embedder = embedder
        self.key_source = key_source
        # Cleared whenever an entry reaches the store
        self.drafts = drafts
        # Id of the opened entry being edited; in memory only
        self.editing_entry_id: Optional[int] = None
        self._state = PendingState.STAGED if self.staged_text else PendingState.IDLE
        self._unsubscribe = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> PendingState:
        return self._state

    @property
    def staged_text(self) -> Optional[str]:
        text = self.storage.get(PENDING_ENTRY_KEY)
        return text if isinstance(text, str) and text else None

    # -----------------------------------------------------------------
    # Events
    # -----------------------------------------------------------------

    async def save_requested(self, text: str, editing_entry_id: Optional[int] = None) -> None:
        """Stage *text* and start sign-in. Performs no store write."""
        if not text.strip():
            return
        self.storage.set(PENDING_ENTRY_KEY, text)
        self.editing_entry_id = editing_entry_id
        if self._state is not PendingState.FLUSHING:
            self._state = PendingState.STAGED
        logger.info("Staged pending entry (%d chars); starting sign-in", len(text))
        try:
            await self.auth.begin_sign_in()
        except AuthError as exc:
            logger.error("Error signing in: %s", exc)

    async def auth_and_key_available(self, sess: SessionKeys) -> Optional[int]:
        """Flush the staged entry with *sess*; return the entry id on success."""
        if self._state is not PendingState.STAGED:
            return None
        self._state = PendingState.FLUSHING

        try:
            text = self.staged_text
            if text is None:
                return None
            try:
                # Entries composed before sign-in never carry a location
                entry_id = await logic.save_entry(
                    sess,
                    text,
                    location=NO_LOCATION,
                    embedder=self.embedder,
                    entry_id=self.editing_entry_id,
                )
            except RemoteWriteError as exc:
                logger.error("Failed to save pending entry after auth: %s", exc)
                return None

            logger.info("Pending entry saved as %s", entry_id)
            current = self.staged_text
            if current is not None and current != text:
                # Restaged during the flush; the new text waits for the next trigger
                self._state = PendingState.STAGED
                return entry_id
            self.storage.remove(PENDING_ENTRY_KEY)
            self.editing_entry_id = None
            if self.drafts is not None:
                self.drafts.clear()
            self._state = PendingState.IDLE
            return entry_id
        finally:
            if self._state is PendingState.FLUSHING:
                self._state = PendingState.STAGED if self.staged_text else PendingState.IDLE

    async def submit(
        self,
        sess: SessionKeys,
        text: str,
        *,
        location_enabled: bool,
        locator: Optional[Locator] = None,
    ) -> int:
        """Signed-in save: write *text* now and clear the draft.

        RemoteWriteError propagates and the draft is kept.
        """
        entry_id = await logic.submit_entry(
            sess,
            text,
            location_enabled=location_enabled,
            locator=locator,
            embedder=self.embedder,
        )
        if self.drafts is not None:
            self.drafts.clear()
        return entry_id

    def discard(self) -> None:
        """Explicit new-entry action: drop any staged entry."""
        self.storage.remove(PENDING_ENTRY_KEY)
        self.editing_entry_id = None
        if self._state is not PendingState.FLUSHING:
            self._state = PendingState.IDLE

    # -----------------------------------------------------------------
    # Auth wiring
    # -----------------------------------------------------------------

    def attach(self) -> None:
        """Flush automatically whenever the auth client reports a sign-in."""
        if self._unsubscribe is None:
            self._unsubscribe = self.auth.subscribe(self._on_auth_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_auth_change(self, event: str, session: Optional[AuthSession]) -> None:
        if event != SIGNED_IN or session is None:
            return
        keys = session_keys(session.user_id, session.email, self.key_source)
        task = asyncio.get_running_loop().create_task(self.auth_and_key_available(keys))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_log_flush_failure)


def _log_flush_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Pending entry flush failed", exc_info=exc)
