# -*- coding: utf-8 -*-
"""Exception types shared across HelloWords.

Each error is caught at its own boundary: decryption failures become
per-entry placeholders, embedding failures become an absent embedding,
write failures leave pending state untouched, auth failures are logged.
"""
from __future__ import annotations


class HellowordsError(Exception):
    """Base class for all HelloWords errors."""


class DecryptionError(HellowordsError):
    """Blob is malformed, truncated, or fails the authentication tag."""


class EmbeddingError(HellowordsError):
    """Embedding provider call failed or returned an unusable body."""


class RemoteWriteError(HellowordsError):
    """Insert or update of an entry row failed."""


class AuthError(HellowordsError):
    """Sign-in or sign-out could not be completed."""
