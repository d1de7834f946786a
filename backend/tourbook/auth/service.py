"""
Signup, login and password lifecycle flows.

Routes stay thin: they parse the request, call one of these functions and
build the response (token, cookie, sanitized user).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from sqlmodel import Session

from tourbook.audit.service import AuditRequestContext, log_audit
from tourbook.auth import repository
from tourbook.auth.passwords import dummy_verify, hash_password, verify_password
from tourbook.auth.reset_tokens import generate_reset_token, hash_reset_token
from tourbook.auth.user_model import User, UserRole
from tourbook.config import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH
from tourbook.errors import (
    AuthenticationError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from tourbook.mailer import Mailer

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Incorrect email or password"
INVALID_RESET_TOKEN_MESSAGE = "Token is invalid or has expired"
FORGOT_PASSWORD_MESSAGE = "If that email is registered, a reset link has been sent to it."

SELF_UPDATABLE_FIELDS = ("name", "email")
ADMIN_UPDATABLE_FIELDS = ("name", "email", "role", "photo", "active")


def validate_new_password(password: str, password_confirm: str) -> None:
    """Reject a new password before any hashing happens."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"A password must have at least {PASSWORD_MIN_LENGTH} characters",
            details={"field": "password"},
        )
    if len(password.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        raise ValidationError(
            f"A password must have at most {PASSWORD_MAX_LENGTH} bytes",
            details={"field": "password"},
        )
    if "\x00" in password:
        raise ValidationError("A password cannot contain NUL characters", details={"field": "password"})
    if password != password_confirm:
        raise ValidationError("Passwords are not the same", details={"field": "passwordConfirm"})


def signup(
    session: Session,
    *,
    name: str,
    email: str,
    password: str,
    password_confirm: str,
    ctx: Optional[AuditRequestContext] = None,
) -> User:
    """Create a regular user. The role is never taken from the request."""
    return _create_account(
        session,
        name=name,
        email=email,
        password=password,
        password_confirm=password_confirm,
        role=UserRole.USER,
        actor=None,
        action="auth.signup",
        ctx=ctx,
    )


def admin_create_user(
    session: Session,
    *,
    actor: User,
    name: str,
    email: str,
    password: str,
    password_confirm: str,
    role: UserRole = UserRole.USER,
    ctx: Optional[AuditRequestContext] = None,
) -> User:
    return _create_account(
        session,
        name=name,
        email=email,
        password=password,
        password_confirm=password_confirm,
        role=role,
        actor=actor,
        action="users.create",
        ctx=ctx,
    )


def _create_account(
    session: Session,
    *,
    name: str,
    email: str,
    password: str,
    password_confirm: str,
    role: UserRole,
    actor: Optional[User],
    action: str,
    ctx: Optional[AuditRequestContext],
) -> User:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Please tell us your name", details={"field": "name"})
    validate_new_password(password, password_confirm)

    user = repository.create(
        session,
        User(name=name, email=email, role=role, hashed_password=hash_password(password)),
    )
    log_audit(
        session,
        actor=actor or user,
        action=action,
        subject_id=user.id,
        meta={"role": role.value},
        ctx=ctx,
    )
    logger.info("Created user %s with role %s", user.id, role.value)
    return user


def login(
    session: Session,
    *,
    email: str,
    password: str,
    ctx: Optional[AuditRequestContext] = None,
) -> User:
    """
    Return the active user for these credentials. Unknown email and wrong
    password fail identically, and both pay for one bcrypt verification.
    """
    user = repository.find_by_email(session, email)
    if user is None:
        dummy_verify(password)
        logger.warning("Login failed: no active account for the given email")
        log_audit(session, actor=None, action="auth.login", reason="unknown_email", ctx=ctx)
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    if not verify_password(password, user.hashed_password):
        user_id = user.id
        logger.warning("Login failed for user %s", user_id)
        log_audit(session, actor=None, action="auth.login", subject_id=user_id, reason="wrong_password", ctx=ctx)
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    log_audit(session, actor=user, action="auth.login", subject_id=user.id, ctx=ctx)
    logger.info("Login succeeded for user %s", user.id)
    return user


def change_password(
    session: Session,
    user: User,
    *,
    current_password: str,
    password: str,
    password_confirm: str,
    ctx: Optional[AuditRequestContext] = None,
) -> User:
    if not verify_password(current_password, user.hashed_password):
        logger.warning("Password change rejected for user %s: current password wrong", user.id)
        log_audit(
            session,
            actor=user,
            action="auth.change_password",
            subject_id=user.id,
            reason="wrong_current_password",
            ctx=ctx,
        )
        raise AuthenticationError("Your current password is wrong", code="wrong_current_password")
    validate_new_password(password, password_confirm)

    repository.save_password(session, user, hash_password(password))
    log_audit(
        session,
        actor=user,
        action="auth.change_password",
        subject_id=user.id,
        meta={"mode": "self_service"},
        ctx=ctx,
    )
    logger.info("Password changed for user %s", user.id)
    return user


def forgot_password(
    session: Session,
    *,
    email: str,
    reset_url_for: Callable[[str], str],
    mailer: Mailer,
    ctx: Optional[AuditRequestContext] = None,
) -> None:
    """
    Issue a reset token and mail its link. Unknown addresses return
    silently so the response does not reveal which accounts exist.

    If the mail cannot be sent the stored token is cleared again, so no
    valid token exists that the user never received.
    """
    user = repository.find_by_email(session, email)
    if user is None:
        logger.info("Password reset requested for an unknown or inactive email")
        return

    user_id, user_email = user.id, user.email
    reset = generate_reset_token()
    repository.store_reset_token(session, user_id, reset.token_hash, reset.expires_at)

    try:
        sent = mailer.send(user_email, reset_url_for(reset.plaintext))
    except Exception:
        logger.exception("Mailer raised while sending reset link for user %s", user_id)
        sent = False

    if not sent:
        repository.clear_reset_token(session, user_id, reset.token_hash)
        logger.error("Reset token for user %s rolled back after mail failure", user_id)
        raise InternalError("There was an error sending the email. Try again later!")

    log_audit(
        session,
        actor=None,
        action="auth.password_reset_requested",
        subject_id=user_id,
        ctx=ctx,
    )
    logger.info("Password reset token issued for user %s", user_id)


def reset_password(
    session: Session,
    *,
    token: str,
    password: str,
    password_confirm: str,
    ctx: Optional[AuditRequestContext] = None,
) -> User:
    """Consume a reset token and set the new password in one transaction."""
    validate_new_password(password, password_confirm)

    user = repository.consume_reset_token(session, hash_reset_token(token))
    if user is None:
        logger.warning("Password reset rejected: invalid or expired token")
        log_audit(session, actor=None, action="auth.password_reset", reason="invalid_reset_token", ctx=ctx)
        raise ValidationError(INVALID_RESET_TOKEN_MESSAGE, code="invalid_reset_token")

    repository.save_password(session, user, hash_password(password))
    log_audit(
        session,
        actor=user,
        action="auth.password_reset",
        subject_id=user.id,
        ctx=ctx,
    )
    logger.info("Password reset completed for user %s", user.id)
    return user


def update_me(
    session: Session,
    user: User,
    fields: Dict[str, Any],
    *,
    ctx: Optional[AuditRequestContext] = None,
) -> User:
    """Self-service profile update: only name and email are writable."""
    if "password" in fields or "passwordConfirm" in fields:
        raise ValidationError(
            "This route is not for password updates. Please use /updateMyPassword."
        )
    values = {key: value for key, value in fields.items() if key in SELF_UPDATABLE_FIELDS and value is not None}
    if not values:
        return user

    updated = repository.update_by_id(session, user.id, values)
    if updated is None:
        raise NotFoundError("No user found with that ID")
    log_audit(
        session,
        actor=updated,
        action="users.update_me",
        subject_id=updated.id,
        meta={"fields": sorted(values)},
        ctx=ctx,
    )
    return updated


def deactivate_user(
    session: Session,
    user_id: int,
    *,
    actor: User,
    ctx: Optional[AuditRequestContext] = None,
) -> None:
    """Soft delete: the record stays, every default read skips it."""
    actor_id = actor.id
    updated = repository.update_by_id(session, user_id, {"active": False})
    if updated is None:
        raise NotFoundError("No user found with that ID")
    log_audit(
        session,
        actor=actor,
        action="users.deactivate",
        subject_id=user_id,
        meta={"self": actor_id == user_id},
        ctx=ctx,
    )
    logger.info("User %s deactivated by %s", user_id, actor_id)


def get_user(session: Session, user_id: int) -> User:
    user = repository.find_by_id(session, user_id)
    if user is None:
        raise NotFoundError("No user found with that ID")
    return user


def list_users(session: Session, *, limit: int = 100, offset: int = 0) -> List[User]:
    return repository.list_users(session, limit=limit, offset=offset)


def admin_update_user(
    session: Session,
    user_id: int,
    fields: Dict[str, Any],
    *,
    actor: User,
    ctx: Optional[AuditRequestContext] = None,
) -> User:
    """Admin edit. Passwords are never changed through this path."""
    if "password" in fields or "passwordConfirm" in fields:
        raise ValidationError("Passwords cannot be changed through this route.")
    values = {key: value for key, value in fields.items() if key in ADMIN_UPDATABLE_FIELDS and value is not None}

    updated = repository.update_by_id(session, user_id, values, include_inactive=True)
    if updated is None:
        raise NotFoundError("No user found with that ID")
    log_audit(
        session,
        actor=actor,
        action="users.update",
        subject_id=user_id,
        meta={"fields": sorted(values)},
        ctx=ctx,
    )
    return updated
