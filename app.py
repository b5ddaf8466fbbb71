#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Application entrypoint for HelloWords.

This file is intentionally minimal. It configures logging and boots the
Textual UI app.
"""
from __future__ import annotations

import asyncio

from hellowords.logging_config import configure_logging
from hellowords.ui import HelloWordsApp


async def _run() -> None:
    app = HelloWordsApp()
    try:
        await app.run_async()
    finally:
        # Lets the next start tell a quick reload from a real reopen
        app.detector.mark_teardown()


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    asyncio.run(_run())


if __name__ == "__main__":
    main()
