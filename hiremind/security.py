"""Password hashing, bearer tokens and stored-secret encryption (stdlib only).

- Passwords: PBKDF2-HMAC-SHA256 with a per-password random salt.
- Tokens: ``base64(payload).base64(hmac-sha256)`` with an expiry claim.
- Secrets (users' LLM API keys): PBKDF2-derived key, SHA-256 counter
  keystream, HMAC tag so tampering or a wrong key fails loudly.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
import time

from hiremind.config import get_env, is_production
from hiremind.errors import AuthenticationError, HireMindError
from hiremind.log import get_logger

log = get_logger(__name__)

_SALT_LEN = 16
_TAG_LEN = 32
_PASSWORD_ITERATIONS = 200_000
_SECRET_ITERATIONS = 100_000
_HASH_SCHEME = "pbkdf2_sha256"

# development fallbacks; production must set both env vars
_DEV_JWT_SECRET = "hiremind-dev-token-secret"
_DEV_ENCRYPTION_KEY = "hiremind-dev-encryption-key"


def _b64e(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64d(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _secret(env_key: str, fallback: str) -> str:
    value = get_env(env_key)
    if value:
        return value
    if is_production():
        raise HireMindError(f"{env_key} must be set in production")
    return fallback


# ── Passwords ────────────────────────────────────────────────────────────


def hash_password(password: str) -> str:
    salt = os.urandom(_SALT_LEN)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PASSWORD_ITERATIONS)
    return f"{_HASH_SCHEME}${_PASSWORD_ITERATIONS}${_b64e(salt)}${_b64e(digest)}"


def verify_password(password: str, stored: str) -> bool:
    try:
        scheme, iterations, salt, digest = stored.split("$")
    except (AttributeError, ValueError):
        return False
    if scheme != _HASH_SCHEME:
        return False
    candidate = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), _b64d(salt), int(iterations)
    )
    return hmac.compare_digest(candidate, _b64d(digest))


# ── Bearer tokens ────────────────────────────────────────────────────────


def _sign(payload: bytes) -> bytes:
    key = _secret("JWT_SECRET", _DEV_JWT_SECRET).encode("utf-8")
    return hmac.new(key, payload, hashlib.sha256).digest()


def issue_token(user_id: int, ttl_hours: int = 168, now: float | None = None) -> str:
    issued = int(now if now is not None else time.time())
    payload = json.dumps(
        {"sub": user_id, "iat": issued, "exp": issued + ttl_hours * 3600},
        separators=(",", ":"),
    ).encode("utf-8")
    return f"{_b64e(payload)}.{_b64e(_sign(payload))}"


def verify_token(token: str, now: float | None = None) -> int:
    """Return the user id carried by *token* or raise AuthenticationError."""
    try:
        body, sig = token.split(".")
        payload = _b64d(body)
        signature = _b64d(sig)
    except (AttributeError, ValueError):
        raise AuthenticationError("Invalid token") from None
    if not hmac.compare_digest(signature, _sign(payload)):
        raise AuthenticationError("Invalid token")

    claims = json.loads(payload)
    if claims.get("exp", 0) < (now if now is not None else time.time()):
        raise AuthenticationError("Token expired")
    return int(claims["sub"])


# ── Stored secrets ───────────────────────────────────────────────────────


def _derive_keys(salt: bytes) -> tuple[bytes, bytes]:
    material = hashlib.pbkdf2_hmac(
        "sha256",
        _secret("ENCRYPTION_KEY", _DEV_ENCRYPTION_KEY).encode("utf-8"),
        salt,
        _SECRET_ITERATIONS,
        dklen=64,
    )
    return material[:32], material[32:]


def _keystream(key: bytes, length: int) -> bytes:
    blocks = []
    for counter in range((length + 31) // 32):
        blocks.append(hashlib.sha256(key + counter.to_bytes(8, "big")).digest())
    return b"".join(blocks)[:length]


def encrypt_secret(value: str) -> str:
    salt = os.urandom(_SALT_LEN)
    enc_key, mac_key = _derive_keys(salt)
    plain = value.encode("utf-8")
    cipher = bytes(a ^ b for a, b in zip(plain, _keystream(enc_key, len(plain))))
    tag = hmac.new(mac_key, salt + cipher, hashlib.sha256).digest()
    return _b64e(salt + cipher + tag)


def decrypt_secret(token: str) -> str:
    try:
        blob = _b64d(token)
    except (AttributeError, ValueError) as exc:
        raise HireMindError("Failed to decrypt secret") from exc
    if len(blob) < _SALT_LEN + _TAG_LEN:
        raise HireMindError("Failed to decrypt secret")

    salt, cipher, tag = blob[:_SALT_LEN], blob[_SALT_LEN:-_TAG_LEN], blob[-_TAG_LEN:]
    enc_key, mac_key = _derive_keys(salt)
    if not hmac.compare_digest(tag, hmac.new(mac_key, salt + cipher, hashlib.sha256).digest()):
        log.warning("Secret failed integrity check (wrong ENCRYPTION_KEY?)")
        raise HireMindError("Failed to decrypt secret")
    return bytes(a ^ b for a, b in zip(cipher, _keystream(enc_key, len(cipher)))).decode("utf-8")
