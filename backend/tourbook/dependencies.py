from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlmodel import Session

from tourbook.audit.service import AuditRequestContext, log_audit
from tourbook.auth import repository
from tourbook.auth.jwt_bearer import JWTBearer
from tourbook.auth.jwt_handler import InvalidTokenError, decode_access_token
from tourbook.auth.user_model import User, UserRole
from tourbook.db import get_session
from tourbook.errors import AuthorizationError, NotAuthenticatedError, SessionInvalidError

logger = logging.getLogger(__name__)

token_scheme = JWTBearer()


def authenticate_token(session: Session, token: str) -> User:
    """
    Resolve a bearer token to its user or raise SessionInvalidError.

    1. Firma, formato y expiración del JWT.
    2. El usuario sigue existiendo y está activo.
    3. La contraseña no cambió después de emitir el token.
    """
    try:
        claims = decode_access_token(token)
    except InvalidTokenError as exc:
        logger.info("Rejected token: %s (%s)", type(exc).__name__, exc)
        raise SessionInvalidError("invalid_token") from None

    user = repository.find_by_id(session, claims.user_id)
    if user is None:
        logger.info("Rejected token: user %s no longer exists or is inactive", claims.user_id)
        raise SessionInvalidError("user_missing")

    if user.changed_password_after(claims.issued_at):
        logger.info("Rejected token: user %s changed password after it was issued", user.id)
        raise SessionInvalidError("password_changed")

    return user


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(token_scheme),
    session: Session = Depends(get_session),
) -> User:
    """
    Valida el token recibido (cabecera o cookie) y devuelve el User activo.
    Lanza 401 si no hay token, si es inválido/expirado, si el usuario ya no
    existe o si cambió su contraseña después de emitirse el token.
    """
    if not token:
        raise NotAuthenticatedError()
    try:
        user = authenticate_token(session, token)
    except SessionInvalidError as exc:
        log_audit(
            session,
            actor=None,
            action="auth.session",
            reason=exc.reason,
            ctx=get_request_audit_context(request),
        )
        raise
    request.state.user = user
    request.state.user_id = user.id
    return user


def restrict_to(*roles: UserRole) -> Callable[..., User]:
    """
    Build a dependency that admits only the given roles. It runs after
    get_current_user, so an anonymous request still gets 401, not 403.
    """
    allowed = frozenset(roles)

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.warning(
                "User %s with role %s denied; allowed roles: %s",
                current_user.id,
                current_user.role.value,
                sorted(role.value for role in allowed),
            )
            raise AuthorizationError()
        return current_user

    return dependency


require_admin = restrict_to(UserRole.ADMIN)


def get_request_audit_context(request: Request) -> AuditRequestContext:
    client_host = request.client.host if request.client else None
    return AuditRequestContext(
        ip=client_host,
        user_agent=request.headers.get("user-agent"),
        correlation_id=getattr(request.state, "correlation_id", None),
    )
