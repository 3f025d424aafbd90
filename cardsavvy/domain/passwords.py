"""Salted scrypt password hashing"""

import hashlib
import hmac
import secrets

SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64


def _derive(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """Return ``<hex digest>.<hex salt>`` for storage"""
    salt = secrets.token_hex(16)
    return f"{_derive(password, salt).hex()}.{salt}"


def verify_password(provided: str, stored: str) -> bool:
    """Constant-time check of ``provided`` against a stored hash"""
    digest, sep, salt = stored.partition(".")
    if not sep or not digest or not salt:
        return False
    try:
        expected = bytes.fromhex(digest)
    except ValueError:
        return False
    return hmac.compare_digest(expected, _derive(provided, salt))
