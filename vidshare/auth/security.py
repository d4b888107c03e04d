"""Credential utilities: password hashing, session tokens, refresh-token sealing."""

import base64
import os
import secrets
import time

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from jose import JWTError, jwt
from passlib.context import CryptContext

from vidshare.config import get_settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

PASSWORD_CONTEXT = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password with argon2 (PHC string format)."""
    return PASSWORD_CONTEXT.hash(password)


def verify_password(password: str, stored: str) -> bool:
    """Check ``password`` against a stored hash; unknown formats never match."""
    try:
        return PASSWORD_CONTEXT.verify(password, stored)
    except (ValueError, TypeError):
        return False


def _create_token(user_id: str, token_type: str, ttl_seconds: int) -> str:
    settings = get_settings()
    now = int(time.time())
    payload = {
        "sub": user_id,
        "typ": token_type,
        "jti": secrets.token_urlsafe(8),
        "iat": now,
        "exp": now + ttl_seconds,
    }
    return jwt.encode(payload, settings.app_secret_key, algorithm="HS256")


def create_access_token(user_id: str) -> str:
    """Create a signed, short-lived access token for ``user_id``."""
    return _create_token(
        user_id, ACCESS_TOKEN, get_settings().access_token_ttl_seconds
    )


def create_refresh_token(user_id: str) -> str:
    """Create a signed refresh token for ``user_id``."""
    return _create_token(
        user_id, REFRESH_TOKEN, get_settings().refresh_token_ttl_seconds
    )


def verify_token(token: str, token_type: str = ACCESS_TOKEN) -> str | None:
    """Verify a token and return the user ID, or None if invalid/wrong type."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.app_secret_key, algorithms=["HS256"])
    except JWTError:
        return None
    if payload.get("typ") != token_type:
        return None
    return payload.get("sub")


def load_encryption_key(enc_key: str | bytes) -> bytes:
    """
    Validate and decode the refresh-token encryption key.

    String keys must be base64 and decode to exactly 32 bytes (AES-256).

    Raises:
        ValueError: If key is invalid format or wrong length
    """
    if isinstance(enc_key, str):
        try:
            enc_key = base64.b64decode(enc_key, validate=True)
        except ValueError as e:
            raise ValueError("Encryption key must be base64-encoded") from e

    if len(enc_key) != 32:
        raise ValueError(f"Encryption key must be exactly 32 bytes, got {len(enc_key)}")

    return enc_key


def seal_refresh_token(token: str) -> bytes:
    """Encrypt a refresh token for storage (12-byte nonce + AES-GCM ciphertext)."""
    key = load_encryption_key(get_settings().token_enc_key)
    nonce = os.urandom(12)
    return nonce + AESGCM(key).encrypt(nonce, token.encode("utf-8"), None)


def open_refresh_token(blob: bytes) -> str | None:
    """Decrypt a stored refresh token; None if the blob is corrupt or tampered."""
    key = load_encryption_key(get_settings().token_enc_key)
    if len(blob) < 12:
        return None
    try:
        plaintext = AESGCM(key).decrypt(blob[:12], blob[12:], None)
    except InvalidTag:
        return None
    return plaintext.decode("utf-8")
