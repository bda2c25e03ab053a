"""PIN hashing with bcrypt."""

from __future__ import annotations

import bcrypt

from svs.config import settings

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_pin(plain_pin: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.PIN_HASH_ROUNDS)
    hashed = bcrypt.hashpw(plain_pin.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_pin(plain_pin: str, pin_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_pin.encode("utf-8"), pin_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def is_pin_hash(value: str) -> bool:
    return value.startswith(_BCRYPT_PREFIXES) and len(value) == 60


def ensure_pin_hash(value: str) -> str:
    """Hash *value* unless it already is a bcrypt hash (legacy plain PINs)."""
    return value if is_pin_hash(value) else hash_pin(value)
