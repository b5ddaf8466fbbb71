"""Tests for hellowords.crypto: key derivation, entry codec, content digest."""

import base64

import pytest

from hellowords.crypto import (
    NONCE_LEN,
    SALT_LEN,
    KeySource,
    content_hash,
    decrypt,
    derive_base_secret,
    encrypt,
    session_keys,
    stretch,
    word_count,
)
from hellowords.errors import DecryptionError

SECRET = derive_base_secret("user-1", "writer@example.com")


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

class TestKeyDerivation:

    def test_base_secret_is_deterministic(self):
        assert derive_base_secret("abc", "a@b.co") == derive_base_secret("abc", "a@b.co")
        assert derive_base_secret("abc", "a@b.co") == "abc:a@b.co:journal_encryption_key"

    def test_base_secret_depends_on_both_fields(self):
        base = derive_base_secret("abc", "a@b.co")
        assert derive_base_secret("abd", "a@b.co") != base
        assert derive_base_secret("abc", "x@b.co") != base

    def test_missing_email_is_empty(self):
        assert derive_base_secret("abc", None) == "abc::journal_encryption_key"

    def test_stretch_gives_256_bit_key_per_salt(self):
        salt_a = b"\x00" * SALT_LEN
        salt_b = b"\x01" * SALT_LEN
        key_a = stretch(SECRET, salt_a)
        assert len(key_a) == 32
        assert stretch(SECRET, salt_a) == key_a
        assert stretch(SECRET, salt_b) != key_a

    def test_stretch_rejects_wrong_salt_length(self):
        with pytest.raises(ValueError):
            stretch(SECRET, b"short")

    def test_session_keys_use_pluggable_source(self):
        class FixedSource(KeySource):
            def secret_for(self, account_id, email):
                return "server-held-secret"

        default = session_keys("user-1", "writer@example.com")
        custom = session_keys("user-1", "writer@example.com", FixedSource())
        assert default.secret == SECRET
        assert custom.secret == "server-held-secret"
        assert "server-held-secret" not in repr(custom)


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

class TestCodec:

    @pytest.mark.parametrize("message", [
        "Hello world",
        "",
        "multi\nline\tentry  with   spacing",
        "ünïcödé ✓ 日本語 🙂",
        "x" * 5000,
    ])
    def test_round_trip(self, message):
        assert decrypt(encrypt(message, SECRET), SECRET) == message

    def test_encrypt_is_not_deterministic(self):
        first = encrypt("same text", SECRET)
        second = encrypt("same text", SECRET)
        assert first != second
        raw_a = base64.b64decode(first)
        raw_b = base64.b64decode(second)
        assert raw_a[:SALT_LEN] != raw_b[:SALT_LEN]
        assert raw_a[SALT_LEN:SALT_LEN + NONCE_LEN] != raw_b[SALT_LEN:SALT_LEN + NONCE_LEN]

    def test_blob_layout(self):
        raw = base64.b64decode(encrypt("Hello world", SECRET))
        # salt + nonce + ciphertext (same length as plaintext) + 16-byte tag
        assert len(raw) == SALT_LEN + NONCE_LEN + len("Hello world") + 16

    def test_every_single_byte_flip_is_detected(self):
        raw = bytearray(base64.b64decode(encrypt("Hello world", SECRET)))
        for i in range(len(raw)):
            tampered = bytearray(raw)
            tampered[i] ^= 0x01
            blob = base64.b64encode(bytes(tampered)).decode()
            with pytest.raises(DecryptionError):
                decrypt(blob, SECRET)

    def test_wrong_secret_fails(self):
        blob = encrypt("Hello world", SECRET)
        with pytest.raises(DecryptionError):
            decrypt(blob, derive_base_secret("user-2", "writer@example.com"))

    def test_bad_base64_fails(self):
        with pytest.raises(DecryptionError):
            decrypt("not base64 at all!", SECRET)

    def test_short_blob_fails(self):
        blob = base64.b64encode(b"\x00" * (SALT_LEN + NONCE_LEN + 15)).decode()
        with pytest.raises(DecryptionError):
            decrypt(blob, SECRET)


# ---------------------------------------------------------------------------
# Digest / counting
# ---------------------------------------------------------------------------

class TestContentHash:

    def test_hash_is_stable_lowercase_hex(self):
        digest = content_hash("Hello world")
        assert digest == content_hash("Hello world")
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)

    def test_hash_ignores_surrounding_whitespace(self):
        assert content_hash("  Hello world\n") == content_hash("Hello world")

    def test_known_value(self):
        # sha256("abc")
        assert content_hash("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    @pytest.mark.parametrize("text,expected", [
        ("Hello world", 2),
        ("  spaced   out\nwords\t here ", 4),
        ("", 0),
        ("   ", 0),
    ])
    def test_word_count(self, text, expected):
        assert word_count(text) == expected
