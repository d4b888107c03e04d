"""Tests for password hashing, tokens and refresh-token sealing."""

import base64
import time

import pytest
from jose import jwt

from vidshare.auth.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    hash_password,
    load_encryption_key,
    open_refresh_token,
    seal_refresh_token,
    verify_password,
    verify_token,
)


def test_hash_and_verify_password():
    stored = hash_password("hunter2-hunter2")

    assert stored.startswith("$argon2")
    assert verify_password("hunter2-hunter2", stored)
    assert not verify_password("hunter3-hunter3", stored)


def test_password_hashes_are_salted():
    assert hash_password("same-password") != hash_password("same-password")


def test_verify_password_rejects_malformed_hash():
    assert not verify_password("x", "not-a-hash")
    assert not verify_password("x", "scrypt$abc$def")
    assert not verify_password("x", "")


def test_access_and_refresh_tokens_are_not_interchangeable():
    access = create_access_token("user-1")
    refresh = create_refresh_token("user-1")

    assert verify_token(access) == "user-1"
    assert verify_token(refresh, REFRESH_TOKEN) == "user-1"
    assert verify_token(refresh) is None
    assert verify_token(access, REFRESH_TOKEN) is None


def test_verify_token_rejects_tampered_and_expired(test_settings):
    assert verify_token("garbage") is None

    forged = jwt.encode(
        {"sub": "user-1", "typ": "access", "exp": int(time.time()) + 60},
        "wrong-key",
        algorithm="HS256",
    )
    assert verify_token(forged) is None

    expired = jwt.encode(
        {"sub": "user-1", "typ": "access", "exp": int(time.time()) - 60},
        test_settings.app_secret_key,
        algorithm="HS256",
    )
    assert verify_token(expired) is None


def test_seal_and_open_refresh_token():
    sealed = seal_refresh_token("refresh-token-value")

    assert b"refresh-token-value" not in sealed
    assert open_refresh_token(sealed) == "refresh-token-value"


def test_open_refresh_token_detects_tampering():
    sealed = bytearray(seal_refresh_token("refresh-token-value"))
    sealed[-1] ^= 0x01

    assert open_refresh_token(bytes(sealed)) is None
    assert open_refresh_token(b"short") is None


def test_load_encryption_key():
    raw = b"k" * 32

    assert load_encryption_key(base64.b64encode(raw).decode()) == raw
    assert load_encryption_key(raw) == raw

    with pytest.raises(ValueError, match="32 bytes"):
        load_encryption_key(base64.b64encode(b"short").decode())
    with pytest.raises(ValueError, match="base64"):
        load_encryption_key("not base64!!")
