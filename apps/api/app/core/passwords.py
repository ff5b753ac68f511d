"""Password hashing and comparison for profile-backed logins."""

from __future__ import annotations

import hashlib
import hmac
import secrets

_ALGORITHM = "pbkdf2_sha256"
_ITERATIONS = 200_000
_SALT_BYTES = 16


def hash_password(password: str, *, iterations: int = _ITERATIONS) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt-hex>$<hash-hex>`` for storage."""
    salt = secrets.token_bytes(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{_ALGORITHM}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str | None, *, legacy_plaintext: bool = False) -> bool:
    """Compare a submitted password with the stored profile value.

    With ``legacy_plaintext`` the stored value is compared byte-for-byte, which
    only exists for compatibility with profiles that were never hashed.
    """
    if not stored:
        return False

    if legacy_plaintext:
        return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))

    parts = stored.split("$")
    if len(parts) != 4 or parts[0] != _ALGORITHM:
        return False

    _, iterations_text, salt_hex, digest_hex = parts
    try:
        iterations = int(iterations_text)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return False

    actual = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(actual, expected)


__all__ = ["hash_password", "verify_password"]
