"""Helpers for creating and decoding JWT access tokens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Protocol

from jose import ExpiredSignatureError, JWTError, jwk, jws, jwt
from jose.exceptions import JWKError, JWSError
from jose.utils import base64url_decode

from tourbook.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from tourbook.utils import to_epoch_seconds, utcnow


class InvalidTokenError(Exception):
    """Base class for every reason a bearer token is rejected."""


class TokenSignatureError(InvalidTokenError):
    """Signature does not match the server secret."""


class TokenMalformedError(InvalidTokenError):
    """Token cannot be parsed or lacks the required claims."""


class TokenExpiredError(InvalidTokenError):
    """Token signature is fine but 'exp' is in the past."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    issued_at: int


class TokenSigner(Protocol):
    """Sign/verify abstraction so the signature algorithm can be swapped."""

    def sign(self, claims: Dict[str, Any]) -> str: ...

    def verify(self, token: str) -> Dict[str, Any]:
        """Return the claims or raise a subclass of InvalidTokenError."""
        ...


class JoseTokenSigner:
    """HMAC/RSA JWT signer backed by python-jose."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self._secret = secret
        self._algorithm = algorithm

    def sign(self, claims: Dict[str, Any]) -> str:
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        self._verify_signature(token)

        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired") from None
        except JWTError as exc:
            raise TokenMalformedError(str(exc)) from None

    def _verify_signature(self, token: str) -> None:
        """
        Check structure and signature before the claims, so a forged token
        is reported apart from an unreadable one.
        """
        try:
            header = jws.get_unverified_header(token)
            signing_input, crypto_segment = token.rsplit(".", 1)
            # Un JWT válido es ASCII puro; cualquier otro carácter lo invalida.
            signing_bytes = signing_input.encode("ascii")
            signature = base64url_decode(crypto_segment.encode("ascii"))
        except (JWSError, ValueError) as exc:
            raise TokenMalformedError(str(exc) or "Malformed token") from None

        if header.get("alg") != self._algorithm:
            raise TokenMalformedError("Unexpected signing algorithm")

        try:
            key = jwk.construct(self._secret, self._algorithm)
        except JWKError as exc:
            raise RuntimeError(f"Unusable signing key: {exc}") from exc
        if not key.verify(signing_bytes, signature):
            raise TokenSignatureError("Signature verification failed")


_signer: Optional[TokenSigner] = None


def get_token_signer() -> TokenSigner:
    global _signer
    if _signer is None:
        _signer = JoseTokenSigner(SECRET_KEY, ALGORITHM)
    return _signer


def set_token_signer(signer: Optional[TokenSigner]) -> None:
    """Override the token signer (useful for testing or key rotation)."""
    global _signer
    _signer = signer


def create_access_token(
    user_id: int,
    issued_at: datetime | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Genera un token JWT con 'sub' (id de usuario), 'iat' y la expiración
    configurada por defecto (ACCESS_TOKEN_EXPIRE_MINUTES) o el delta
    personalizado proporcionado.
    """
    issued = issued_at or utcnow()
    expire = issued + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {
        "sub": str(user_id),
        "iat": to_epoch_seconds(issued),
        "exp": to_epoch_seconds(expire),
    }
    return get_token_signer().sign(claims)


def decode_access_token(token: str) -> TokenClaims:
    """
    Decodifica y valida un JWT.
    - TokenSignatureError si la firma es inválida.
    - TokenExpiredError si el token expiró.
    - TokenMalformedError si no se puede leer o faltan 'sub' / 'iat'.
    """
    payload = get_token_signer().verify(token)

    sub = payload.get("sub")
    iat = payload.get("iat")
    if sub is None or iat is None:
        raise TokenMalformedError("Missing 'sub' or 'iat' claim")
    try:
        return TokenClaims(user_id=int(sub), issued_at=int(iat))
    except (TypeError, ValueError):
        raise TokenMalformedError("Invalid 'sub' or 'iat' claim") from None
