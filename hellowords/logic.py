# -*- coding: utf-8 -*-
"""Application logic that composes DB and crypto layers.

This module provides the public API used by the UI and the pending-entry
coordinator. It does not contain any Textual UI code. Key stretching is
CPU-bound, so every encrypt/decrypt runs in a worker thread.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
import asyncio
import logging

import aiosqlite

from . import db
from .config import load_config
from .crypto import SessionKeys, content_hash, decrypt, encrypt, word_count
from .embeddings import EmbeddingClient
from .errors import DecryptionError
from .location import Locator, resolve_location

logger = logging.getLogger(__name__)

LIST_DECRYPT_FAILED = "[Decryption failed - content may be corrupted]"
SEARCH_DECRYPT_FAILED = "[Decryption failed]"


@dataclass
class Entry:
    """A decrypted entry ready for display."""

    id: int
    content: str
    created_at: str
    updated_at: str
    location: str
    word_count: int
    similarity: Optional[float] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


_default_embedder: Optional[EmbeddingClient] = None

def default_embedder() -> EmbeddingClient:
    """Embedding client built from the JSON config (created once)."""
    global _default_embedder
    if _default_embedder is None:
        _default_embedder = EmbeddingClient.from_config(load_config())
    return _default_embedder


# ---------------------------------------------------------------------
# DB bridge
# ---------------------------------------------------------------------

async def init_db() -> None:
    """Initialize the SQLite database (create tables on first run)."""
    await db.init_db()


# ---------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------

async def save_entry(
    sess: SessionKeys,
    content: str,
    *,
    location: str,
    embedder: Optional[EmbeddingClient] = None,
    entry_id: Optional[int] = None,
) -> int:
    """Encrypt and persist *content*; return the entry id.

    Inserts a new row, or replaces the payload of *entry_id* when given.
    Raises RemoteWriteError if the store rejects the write.
    """
    text = content.strip()
    if not text:
        raise ValueError("Entry content required")

    embedder = embedder or default_embedder()
    # Hash and embedding are computed over plaintext before encryption
    digest = content_hash(text)
    embedding = await embedder.embed(text)
    encrypted = await asyncio.to_thread(encrypt, text, sess.secret)
    count = word_count(text)
    now = _now()

    if entry_id is not None:
        await db.update_entry_row(
            entry_id, sess.user_id, encrypted, digest, location, count, embedding or None, now
        )
        logger.info("Updated entry %s (%d words)", entry_id, count)
        return entry_id

    eid = await db.insert_entry_row(
        sess.user_id, encrypted, digest, location, count, embedding or None, now
    )
    logger.info("Saved entry %s (%d words, embedding=%s)", eid, count, bool(embedding))
    return eid


async def submit_entry(
    sess: SessionKeys,
    content: str,
    *,
    location_enabled: bool,
    locator: Optional[Locator] = None,
    embedder: Optional[EmbeddingClient] = None,
) -> int:
    """Authenticated save path: always a new row, located only if enabled."""
    location = await resolve_location(location_enabled, locator)
    return await save_entry(sess, content, location=location, embedder=embedder)


async def _decrypt_row(row, secret: str, placeholder: str) -> Entry:
    try:
        text = await asyncio.to_thread(decrypt, row["encrypted_content"], secret)
    except DecryptionError as exc:
        logger.error("Failed to decrypt entry %s: %s", row["id"], exc)
        text = placeholder
    similarity = row["similarity"] if "similarity" in row.keys() else None
    return Entry(
        id=row["id"],
        content=text,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        location=row["location"],
        word_count=row["word_count"],
        similarity=similarity,
    )


async def list_entries(sess: SessionKeys) -> List[Entry]:
    """Return all entries of the session's account, newest first."""
    rows = await db.list_entry_rows_for_user(sess.user_id)
    return list(
        await asyncio.gather(*(_decrypt_row(r, sess.secret, LIST_DECRYPT_FAILED) for r in rows))
    )


async def get_entry(sess: SessionKeys, entry_id: int) -> Entry:
    """Return one decrypted entry; DecryptionError propagates."""
    row = await db.get_entry_row(sess.user_id, entry_id)
    if not row:
        raise ValueError("Entry not found")
    text = await asyncio.to_thread(decrypt, row["encrypted_content"], sess.secret)
    return Entry(
        id=row["id"],
        content=text,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        location=row["location"],
        word_count=row["word_count"],
    )


async def delete_entry(sess: SessionKeys, entry_id: int) -> None:
    await db.delete_entry_row(entry_id, sess.user_id)


async def delete_all_entries(sess: SessionKeys) -> int:
    """Remove all of the signed-in user's entries."""
    count = await db.delete_all_entry_rows(sess.user_id)
    logger.info("Deleted all entries (%d)", count)
    return count


# ---------------------------------------------------------------------
# Semantic search
# ---------------------------------------------------------------------

async def search_entries(
    sess: SessionKeys,
    query: str,
    *,
    embedder: Optional[EmbeddingClient] = None,
    threshold: float = 0.7,
    limit: int = 5,
) -> List[Entry]:
    """Entries similar to *query*, most similar first.

    The query itself is sent to the embedding provider in plaintext. A row
    that fails to decrypt keeps its place with a placeholder as content.
    """
    if not query.strip():
        return []
    embedder = embedder or default_embedder()
    query_embedding = await embedder.embed(query)
    if not query_embedding:
        return []

    try:
        rows = await db.match_entries(query_embedding, threshold, limit, sess.user_id)
    except aiosqlite.Error:
        logger.exception("Error searching entries")
        return []

    return list(
        await asyncio.gather(*(_decrypt_row(r, sess.secret, SEARCH_DECRYPT_FAILED) for r in rows))
    )
