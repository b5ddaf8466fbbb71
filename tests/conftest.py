"""
Shared pytest fixtures for HelloWords tests.

Every test gets its own SQLite file, config directory and local storage,
plus a deterministic embedding client so no provider is ever contacted.
"""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from hellowords import db, logic
from hellowords.crypto import session_keys
from hellowords.storage import LocalStorage


class MockEmbeddingClient:
    """
    Deterministic stand-in for EmbeddingClient.

    Returns the vector registered for a text, else *default*. With
    ``fail=True`` it behaves like a provider outage (empty vector).
    ``gate`` lets a test hold an embed call open.
    """

    def __init__(self, vectors=None, default=None, fail=False):
        self.vectors = dict(vectors or {})
        self.default = default if default is not None else [0.1, 0.2, 0.3]
        self.fail = fail
        self.calls = []
        self.gate = None

    async def embed(self, text: str) -> list:
        self.calls.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            return []
        return list(self.vectors.get(text, self.default))


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep config, keys and default clients out of the real user profile."""
    monkeypatch.setenv("HELLOWORDS_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(logic, "_default_embedder", None)
    yield


@pytest_asyncio.fixture
async def database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db_path = tmp_path / "hellowords-test.sqlite3"
    monkeypatch.setattr(db, "DB_PATH", str(db_path))
    await db.init_db()
    return db_path


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path / "local_storage.json")


@pytest.fixture
def keys():
    return session_keys("user-1", "writer@example.com")


@pytest.fixture
def embedder() -> MockEmbeddingClient:
    return MockEmbeddingClient()


async def count_rows(user_id: str) -> int:
    rows = await db.list_entry_rows_for_user(user_id)
    return len(rows)


async def wait_for(predicate, timeout: float = 10.0) -> None:
    """Poll *predicate* until true; fail the test after *timeout* seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.02)
