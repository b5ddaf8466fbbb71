# -*- coding: utf-8 -*-
"""Crypto helpers and key handling for HelloWords.

This module encapsulates *stateless* cryptographic helpers and the
session key container. It does **not** perform any database I/O.

Blob layout (base64 encoded)::

    salt (16) | nonce (12) | AES-256-GCM ciphertext + tag (16)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple
import base64
import binascii
import hashlib
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import DecryptionError

# ---------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------

PBKDF2_ITERATIONS = 100_000

SALT_LEN = 16
NONCE_LEN = 12
KEY_LEN = 32
TAG_LEN = 16

KEY_SUFFIX = "journal_encryption_key"


# ---------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------

def derive_base_secret(account_id: str, email: Optional[str]) -> str:
    """Return the deterministic passphrase for an account."""
    return f"{account_id}:{email or ''}:{KEY_SUFFIX}"


class KeySource:
    """Where a session's base secret comes from.

    Subclass and override :meth:`secret_for` to plug in a server-held or
    user-chosen secret; the codec only ever sees the resulting string.
    """

    def secret_for(self, account_id: str, email: Optional[str]) -> str:
        raise NotImplementedError


class AccountKeySource(KeySource):
    """Secret derived solely from the account id and email."""

    def secret_for(self, account_id: str, email: Optional[str]) -> str:
        return derive_base_secret(account_id, email)


@dataclass
class SessionKeys:
    """Derived secret bound to an authenticated account session."""

    user_id: str
    email: str
    secret: str = field(repr=False)


def session_keys(
    account_id: str,
    email: Optional[str],
    key_source: Optional[KeySource] = None,
) -> SessionKeys:
    """Build the in-memory :class:`SessionKeys` for an account."""
    source = key_source or AccountKeySource()
    return SessionKeys(
        user_id=account_id,
        email=email or "",
        secret=source.secret_for(account_id, email),
    )


def stretch(secret: str, salt: bytes) -> bytes:
    """Derive a 256-bit AES key from *secret* using PBKDF2-HMAC-SHA256."""
    if len(salt) != SALT_LEN:
        raise ValueError(f"salt must be {SALT_LEN} bytes")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LEN,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(secret.encode("utf-8"))


# ---------------------------------------------------------------------
# AEAD helpers
# ---------------------------------------------------------------------

def aesgcm_encrypt(key: bytes, plaintext: bytes) -> Tuple[bytes, bytes]:
    """Encrypt *plaintext* with AES-GCM; return (nonce, ciphertext)."""
    nonce = secrets.token_bytes(NONCE_LEN)
    ct = AESGCM(key).encrypt(nonce, plaintext, None)
    return nonce, ct

def aesgcm_decrypt(key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    """Decrypt AES-GCM *ciphertext* with *nonce*; return plaintext."""
    return AESGCM(key).decrypt(nonce, ciphertext, None)


# ---------------------------------------------------------------------
# Entry codec
# ---------------------------------------------------------------------

def encrypt(plaintext: str, secret: str) -> str:
    """Encrypt *plaintext* under a fresh salt and nonce; return a base64 blob."""
    salt = secrets.token_bytes(SALT_LEN)
    key = stretch(secret, salt)
    nonce, ct = aesgcm_encrypt(key, plaintext.encode("utf-8"))
    return base64.b64encode(salt + nonce + ct).decode("ascii")

def decrypt(blob: str, secret: str) -> str:
    """Decrypt a blob produced by :func:`encrypt`.

    Raises :class:`DecryptionError` for anything other than a clean,
    authenticated round trip.
    """
    try:
        combined = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError, TypeError) as exc:
        raise DecryptionError("Failed to decrypt content: invalid base64") from exc

    if len(combined) < SALT_LEN + NONCE_LEN + TAG_LEN:
        raise DecryptionError("Failed to decrypt content: blob too short")

    salt = combined[:SALT_LEN]
    nonce = combined[SALT_LEN:SALT_LEN + NONCE_LEN]
    ct = combined[SALT_LEN + NONCE_LEN:]

    key = stretch(secret, salt)
    try:
        plaintext = aesgcm_decrypt(key, nonce, ct)
    except InvalidTag as exc:
        raise DecryptionError("Failed to decrypt content: authentication failed") from exc

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError("Failed to decrypt content: not UTF-8") from exc


# ---------------------------------------------------------------------
# Content digest / counting
# ---------------------------------------------------------------------

def content_hash(plaintext: str) -> str:
    """SHA-256 hex digest of the trimmed plaintext."""
    return hashlib.sha256(plaintext.strip().encode("utf-8")).hexdigest()

def word_count(text: str) -> int:
    """Number of whitespace-separated words in *text*."""
    return len(text.split())
