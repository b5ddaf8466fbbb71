#! /usr/bin/python3
# -*- coding: utf-8 -*-
"""SQLite schema and async data access for HelloWords.

Rows only ever carry ciphertext; the plaintext of an entry never reaches
this module.
"""
from __future__ import annotations

from typing import List, Optional, Sequence
import json
import logging
import math
import os

import aiosqlite

from .errors import RemoteWriteError

logger = logging.getLogger(__name__)

DB_PATH = os.environ.get("HELLOWORDS_DB", "hellowords.sqlite3")


# ---------------------------------------------------------------------
# Base schema (new installs)
# ---------------------------------------------------------------------

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS entries (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id             TEXT NOT NULL,
    encrypted_content   TEXT NOT NULL,
    content_hash        TEXT,
    location            TEXT NOT NULL DEFAULT 'No location saved',
    word_count          INTEGER NOT NULL DEFAULT 0,
    -- JSON array of floats, NULL when embedding failed
    embedding           TEXT,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_entries_user ON entries(user_id);
"""


# ---------------------------------------------------------------------
# Migrations (existing installs)
# ---------------------------------------------------------------------

async def _column_exists(db: aiosqlite.Connection, table: str, column: str) -> bool:
    """Return True if `column` is present in `table`."""
    cur = await db.execute(f"PRAGMA table_info({table})")
    rows = await cur.fetchall()
    await cur.close()
    for r in rows:
        # PRAGMA table_info columns: cid, name, type, notnull, default_value, pk
        if len(r) >= 2 and r[1] == column:
            return True
    return False


async def migrate_db() -> List[str]:
    """Idempotent migrations for DBs that predate hash/embedding columns.

    Returns the statements that were applied.
    """
    async with aiosqlite.connect(DB_PATH) as db:
        statements = []
        if not await _column_exists(db, "entries", "content_hash"):
            statements.append("ALTER TABLE entries ADD COLUMN content_hash TEXT;")
        if not await _column_exists(db, "entries", "embedding"):
            statements.append("ALTER TABLE entries ADD COLUMN embedding TEXT;")
        if not await _column_exists(db, "entries", "updated_at"):
            statements.append("ALTER TABLE entries ADD COLUMN updated_at TEXT;")
            statements.append("UPDATE entries SET updated_at = created_at WHERE updated_at IS NULL;")

        for stmt in statements:
            await db.execute(stmt)

        if statements:
            await db.commit()
            logger.info("Applied %d migration statement(s) to %s", len(statements), DB_PATH)
        return statements


# ---------------------------------------------------------------------
# Connection / initialization
# ---------------------------------------------------------------------

async def init_db() -> None:
    """Create tables if they don't exist and run lightweight migrations."""
    async with aiosqlite.connect(DB_PATH) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()
    await migrate_db()


def _encode_embedding(embedding: Optional[Sequence[float]]) -> Optional[str]:
    if not embedding:
        return None
    return json.dumps([float(v) for v in embedding])


def cosine_similarity(stored: Optional[str], query: Optional[str]) -> Optional[float]:
    """SQLite user function: cosine similarity of two JSON float arrays."""
    if not stored or not query:
        return None
    try:
        a = json.loads(stored)
        b = json.loads(query)
    except ValueError:
        return None
    if len(a) != len(b) or not a:
        return None
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return None
    return dot / norm


# ---------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------

async def insert_entry_row(
    user_id: str,
    encrypted_content: str,
    content_hash: Optional[str],
    location: str,
    word_count: int,
    embedding: Optional[Sequence[float]],
    created_at: str,
) -> int:
    """Insert an entry row and return new entry id."""
    try:
        async with aiosqlite.connect(DB_PATH) as db:
            cur = await db.execute(
                """
                INSERT INTO entries (
                    user_id, encrypted_content, content_hash,
                    location, word_count, embedding,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    encrypted_content,
                    content_hash,
                    location,
                    word_count,
                    _encode_embedding(embedding),
                    created_at,
                    created_at,
                ),
            )
            await db.commit()
            return cur.lastrowid
    except aiosqlite.Error as exc:
        raise RemoteWriteError(f"Error saving entry: {exc}") from exc


async def update_entry_row(
    entry_id: int,
    user_id: str,
    encrypted_content: str,
    content_hash: Optional[str],
    location: str,
    word_count: int,
    embedding: Optional[Sequence[float]],
    updated_at: str,
) -> None:
    """Replace the encrypted payload and metadata of an existing entry."""
    try:
        async with aiosqlite.connect(DB_PATH) as db:
            cur = await db.execute(
                """
                UPDATE entries
                   SET encrypted_content = ?,
                       content_hash = ?,
                       location = ?,
                       word_count = ?,
                       embedding = ?,
                       updated_at = ?
                 WHERE id = ? AND user_id = ?
                """,
                (
                    encrypted_content,
                    content_hash,
                    location,
                    word_count,
                    _encode_embedding(embedding),
                    updated_at,
                    entry_id,
                    user_id,
                ),
            )
            await db.commit()
            changed = cur.rowcount
    except aiosqlite.Error as exc:
        raise RemoteWriteError(f"Error updating entry: {exc}") from exc
    if changed == 0:
        raise RemoteWriteError(f"Entry {entry_id} not found for update")


async def list_entry_rows_for_user(user_id: str):
    """Return all entry rows for a user, newest first."""
    async with aiosqlite.connect(DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        cur = await db.execute(
            """
            SELECT id, user_id, encrypted_content, content_hash,
                   location, word_count, created_at, updated_at
              FROM entries
             WHERE user_id = ?
             ORDER BY created_at DESC, id DESC
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
        return rows


async def get_entry_row(user_id: str, entry_id: int):
    """Return a single entry row (or None) for this user."""
    async with aiosqlite.connect(DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        cur = await db.execute(
            """
            SELECT id, user_id, encrypted_content, content_hash,
                   location, word_count, embedding, created_at, updated_at
              FROM entries
             WHERE id = ? AND user_id = ?
            """,
            (entry_id, user_id),
        )
        row = await cur.fetchone()
        await cur.close()
        return row


async def delete_entry_row(entry_id: int, user_id: str) -> None:
    """Delete an entry owned by *user_id*."""
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute(
            "DELETE FROM entries WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )
        await db.commit()


async def delete_all_entry_rows(user_id: str) -> int:
    """Delete every entry owned by *user_id*; return the number removed."""
    try:
        async with aiosqlite.connect(DB_PATH) as db:
            cur = await db.execute("DELETE FROM entries WHERE user_id = ?", (user_id,))
            await db.commit()
            return cur.rowcount
    except aiosqlite.Error as exc:
        raise RemoteWriteError(f"Could not delete entries: {exc}") from exc


async def match_entries(
    query_embedding: Sequence[float],
    match_threshold: float,
    match_count: int,
    filter_user_id: str,
):
    """Rows of *filter_user_id* whose cosine similarity is >= threshold.

    Ordered by descending similarity and capped at *match_count*. Each row
    carries an extra ``similarity`` column.
    """
    query = _encode_embedding(query_embedding)
    if query is None or match_count <= 0:
        return []
    async with aiosqlite.connect(DB_PATH) as db:
        await db.create_function("cosine_similarity", 2, cosine_similarity, deterministic=True)
        db.row_factory = aiosqlite.Row
        cur = await db.execute(
            """
            SELECT * FROM (
                SELECT id, user_id, encrypted_content, content_hash,
                       location, word_count, created_at, updated_at,
                       cosine_similarity(embedding, ?) AS similarity
                  FROM entries
                 WHERE user_id = ? AND embedding IS NOT NULL
            )
             WHERE similarity IS NOT NULL AND similarity >= ?
             ORDER BY similarity DESC
             LIMIT ?
            """,
            (query, filter_user_id, match_threshold, match_count),
        )
        rows = await cur.fetchall()
        await cur.close()
        return rows
