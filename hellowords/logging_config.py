# -*- coding: utf-8 -*-
"""Logging setup for the HelloWords application.

The Textual UI owns the terminal, so records go to a file under the
config directory.
"""
from __future__ import annotations

from pathlib import Path
import datetime
import logging
import os

from .config import _config_dir


def configure_logging() -> Path:
    """Attach a timestamped file handler to the root logger; return its path."""
    log_dir = _config_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    now = datetime.datetime.now().strftime("%Y-%m-%d-%H-%M")
    log_path = log_dir / f"{now}.log"

    formatter = logging.Formatter(
        fmt="%(asctime)s - [%(name)s] - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)"
    )
    file_handler = logging.FileHandler(log_path, encoding="UTF-8")
    file_handler.setFormatter(formatter)

    level_name = os.environ.get("HELLOWORDS_LOG_LEVEL", "INFO").upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    root_logger.addHandler(file_handler)

    for module in ("httpx", "httpcore", "aiosqlite"):
        logging.getLogger(module).setLevel(logging.WARNING)
    return log_path
