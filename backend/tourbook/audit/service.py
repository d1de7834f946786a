from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlmodel import Session

from tourbook.audit.models import OUTCOME_FAILURE, OUTCOME_SUCCESS, AuditLog
from tourbook.auth.user_model import User

logger = logging.getLogger(__name__)

USER_AGENT_MAX_LENGTH = 256


@dataclass(frozen=True)
class AuditRequestContext:
    ip: Optional[str]
    user_agent: Optional[str]
    correlation_id: Optional[str]


def log_audit(
    session: Session,
    *,
    actor: Optional[User],
    action: str,
    subject_id: Optional[int] = None,
    reason: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    ctx: Optional[AuditRequestContext] = None,
    commit: bool = True,
) -> AuditLog:
    """
    Persist a security event. A ``reason`` marks it as a failure.

    Never put passwords, bearer tokens or reset token plaintext in ``meta``.
    """
    entry = AuditLog(
        action=action,
        outcome=OUTCOME_FAILURE if reason else OUTCOME_SUCCESS,
        reason=reason,
        actor_id=actor.id if actor else None,
        actor_email=actor.email if actor else None,
        subject_user_id=subject_id,
        meta=meta,
        ip=ctx.ip if ctx else None,
        user_agent=ctx.user_agent[:USER_AGENT_MAX_LENGTH] if ctx and ctx.user_agent else None,
        correlation_id=ctx.correlation_id if ctx else None,
    )
    session.add(entry)
    if commit:
        session.commit()
    logger.debug("Audit %s subject=%s reason=%s", action, subject_id, reason)
    return entry
