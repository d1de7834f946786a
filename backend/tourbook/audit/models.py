from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from tourbook.utils import utcnow

OUTCOME_SUCCESS = "success"
OUTCOME_FAILURE = "failure"


class AuditLog(SQLModel, table=True):
    """
    Security event: who acted, on which account, and whether it succeeded.

    Failed logins and rejected sessions are recorded with ``outcome``
    "failure" and a machine-readable ``reason`` (``wrong_password``,
    ``password_changed``, ...), the detail the HTTP response never carries.
    """

    __tablename__ = "security_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)

    action: str = Field(nullable=False, index=True, max_length=64)
    outcome: str = Field(default=OUTCOME_SUCCESS, nullable=False, index=True, max_length=16)
    reason: Optional[str] = Field(default=None, max_length=64)

    actor_id: Optional[int] = Field(default=None, index=True)
    actor_email: Optional[str] = Field(default=None, max_length=254)
    subject_user_id: Optional[int] = Field(default=None, index=True)

    meta: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON(none_as_null=True), nullable=True),
    )

    ip: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=256)
    correlation_id: Optional[str] = Field(default=None, index=True, max_length=64)
