"""bcrypt hashing for user passwords."""

from __future__ import annotations

import logging

from passlib.hash import bcrypt

from tourbook.config import BCRYPT_ROUNDS

logger = logging.getLogger(__name__)

_hasher = bcrypt.using(rounds=BCRYPT_ROUNDS)

# Hash fijo para igualar el coste de un login con email inexistente.
_DUMMY_HASH = _hasher.hash("tourbook-dummy-password")


def hash_password(plaintext: str) -> str:
    """Return a salted bcrypt hash with the configured cost factor."""
    return _hasher.hash(plaintext)


def verify_password(plaintext: str, hashed: str | None) -> bool:
    """
    Compare a candidate password against a stored hash.

    A missing or malformed stored hash is a mismatch, not an error.
    """
    if not hashed:
        return False
    try:
        return bcrypt.verify(plaintext, hashed)
    except ValueError as exc:
        # passlib rechaza tanto hashes corruptos como contraseñas con NUL.
        logger.warning("Password verification rejected its input: %s", type(exc).__name__)
        return False


def dummy_verify(plaintext: str) -> None:
    """
    Spend one bcrypt verification without a real account behind it. Input
    bcrypt refuses fails the same way verify_password fails for it.
    """
    try:
        bcrypt.verify(plaintext, _DUMMY_HASH)
    except ValueError as exc:
        logger.warning("Password verification rejected its input: %s", type(exc).__name__)
