"""Manual DB migration helper."""
from __future__ import annotations

import asyncio

from hellowords.db import DB_PATH, migrate_db


async def migrate() -> None:
    applied = await migrate_db()
    if applied:
        print(f"Migrated {DB_PATH}:")
        for stmt in applied:
            print(f"  {stmt}")
    else:
        print(f"{DB_PATH} is up to date.")


if __name__ == "__main__":
    asyncio.run(migrate())
