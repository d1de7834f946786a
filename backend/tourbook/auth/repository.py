"""
Credential store: every read and write of User records goes through here.

Reads exclude soft-deleted users unless the caller passes
``include_inactive=True`` explicitly.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from tourbook.auth.user_model import User
from tourbook.errors import ConflictError
from tourbook.utils import normalize_email, utcnow

logger = logging.getLogger(__name__)

# Campos que nunca se modifican a través de update_by_id.
PROTECTED_FIELDS = frozenset(
    {
        "id",
        "hashed_password",
        "password_changed_at",
        "password_reset_token_hash",
        "password_reset_expires_at",
    }
)


def _active_only(statement, include_inactive: bool):
    if include_inactive:
        return statement
    return statement.where(User.active == True)  # noqa: E712


def find_by_email(session: Session, email: str, *, include_inactive: bool = False) -> Optional[User]:
    statement = _active_only(select(User).where(User.email == normalize_email(email)), include_inactive)
    return session.exec(statement).first()


def find_by_id(session: Session, user_id: int, *, include_inactive: bool = False) -> Optional[User]:
    statement = _active_only(select(User).where(User.id == user_id), include_inactive)
    return session.exec(statement).first()


def list_users(
    session: Session,
    *,
    include_inactive: bool = False,
    limit: int = 100,
    offset: int = 0,
) -> List[User]:
    statement = _active_only(select(User), include_inactive).order_by(User.id).offset(offset).limit(limit)
    return list(session.exec(statement).all())


def _commit_or_conflict(session: Session) -> None:
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info("Rejected write: email already registered")
        raise ConflictError(
            "Duplicate field value: email already in use. Please use another value!",
            details={"field": "email"},
        ) from None


def create(session: Session, user: User) -> User:
    """
    Insert a new user. A duplicate email raises ConflictError
    (the unique index decides, so concurrent signups cannot both win).
    """
    user.email = normalize_email(user.email)
    session.add(user)
    _commit_or_conflict(session)
    session.refresh(user)
    return user


def update_by_id(
    session: Session,
    user_id: int,
    values: Dict[str, Any],
    *,
    include_inactive: bool = False,
) -> Optional[User]:
    """Apply profile/admin field changes. Password and reset fields are rejected."""
    forbidden = PROTECTED_FIELDS.intersection(values)
    if forbidden:
        raise ValueError(f"update_by_id cannot modify {sorted(forbidden)}")

    user = find_by_id(session, user_id, include_inactive=include_inactive)
    if user is None:
        return None

    for field, value in values.items():
        if field == "email":
            value = normalize_email(value)
        setattr(user, field, value)
    session.add(user)
    _commit_or_conflict(session)
    session.refresh(user)
    return user


def save_password(session: Session, user: User, hashed_password: str, *, commit: bool = True) -> User:
    """Store a new password hash and stamp password_changed_at."""
    user.hashed_password = hashed_password
    user.mark_password_changed()
    session.add(user)
    if commit:
        session.commit()
        session.refresh(user)
    return user


def store_reset_token(session: Session, user_id: int, token_hash: str, expires_at: datetime) -> None:
    """Overwrite any outstanding reset token for the user in a single UPDATE."""
    statement = (
        update(User)
        .where(User.id == user_id)
        .values(password_reset_token_hash=token_hash, password_reset_expires_at=expires_at)
    )
    session.connection().execute(statement)
    session.commit()


def clear_reset_token(session: Session, user_id: int, token_hash: Optional[str] = None) -> bool:
    """
    Remove the outstanding reset token. With ``token_hash`` the clear only
    happens while that exact token is still the stored one.
    """
    statement = update(User).where(User.id == user_id)
    if token_hash is not None:
        statement = statement.where(User.password_reset_token_hash == token_hash)
    statement = statement.values(password_reset_token_hash=None, password_reset_expires_at=None)
    result = session.connection().execute(statement)
    session.commit()
    return result.rowcount == 1


def consume_reset_token(session: Session, token_hash: str, now: Optional[datetime] = None) -> Optional[User]:
    """
    Find the active user holding this unexpired token and clear it.

    Compare-and-clear: of two concurrent consumers only one sees rowcount 1.
    Does not commit, so the caller can write the new password in the same
    transaction.
    """
    now = now or utcnow()
    statement = select(User).where(
        User.password_reset_token_hash == token_hash,
        User.password_reset_expires_at > now,
        User.active == True,  # noqa: E712
    )
    user = session.exec(statement).first()
    if user is None:
        return None

    cleared = session.connection().execute(
        update(User)
        .where(User.id == user.id, User.password_reset_token_hash == token_hash)
        .values(password_reset_token_hash=None, password_reset_expires_at=None)
    )
    if cleared.rowcount != 1:
        session.rollback()
        return None

    session.expire(user)
    return user
