"""Single-use password reset tokens (independent of the JWT bearer tokens)."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from tourbook.config import RESET_TOKEN_EXPIRE_MINUTES
from tourbook.utils import utcnow

RESET_TOKEN_BYTES = 32


@dataclass(frozen=True)
class ResetToken:
    plaintext: str
    token_hash: str
    expires_at: datetime

    def __repr__(self) -> str:
        # El texto plano solo viaja en el correo; no debe acabar en logs.
        return f"ResetToken(token_hash={self.token_hash[:8]}..., expires_at={self.expires_at.isoformat()})"


def hash_reset_token(plaintext: str) -> str:
    """SHA-256 hex digest. The token is already high-entropy, so a fast hash is enough."""
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def generate_reset_token(now: datetime | None = None) -> ResetToken:
    plaintext = secrets.token_hex(RESET_TOKEN_BYTES)
    expires_at = (now or utcnow()) + timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES)
    return ResetToken(
        plaintext=plaintext,
        token_hash=hash_reset_token(plaintext),
        expires_at=expires_at,
    )
