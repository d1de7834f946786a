from __future__ import annotations

from datetime import datetime, timedelta, timezone

from tourbook.auth.user_model import User, UserRead, UserRole
from tourbook.utils import to_epoch_seconds


def _user(**kwargs) -> User:
    return User(id=1, name="Ana", email="ana@example.com", hashed_password="x", **kwargs)


def test_defaults():
    user = _user()
    assert user.role == UserRole.USER
    assert user.active is True
    assert user.photo == "default.jpg"
    assert user.password_changed_at is None


def test_password_change_is_stamped_one_second_in_the_past():
    now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    user = _user()
    user.mark_password_changed(now)
    assert user.password_changed_at == now - timedelta(seconds=1)


def test_changed_password_after_compares_whole_seconds():
    now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    user = _user()
    assert user.changed_password_after(to_epoch_seconds(now)) is False

    user.mark_password_changed(now)
    changed = to_epoch_seconds(now) - 1

    assert user.changed_password_after(changed - 60) is True
    assert user.changed_password_after(changed - 1) is True
    assert user.changed_password_after(changed) is False
    # Un token emitido justo después del cambio sigue siendo válido.
    assert user.changed_password_after(to_epoch_seconds(now)) is False


def test_changed_password_after_accepts_naive_utc_from_the_database():
    user = _user(password_changed_at=datetime(2024, 1, 1, 12, 0, 0))
    issued = to_epoch_seconds(datetime(2024, 1, 1, 11, 0, 0, tzinfo=timezone.utc))
    assert user.changed_password_after(issued) is True


def test_pending_reset():
    now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    user = _user(
        password_reset_token_hash="abc",
        password_reset_expires_at=now + timedelta(minutes=10),
    )
    assert user.has_pending_reset(now) is True
    assert user.has_pending_reset(now + timedelta(minutes=11)) is False


def test_read_model_has_no_secret_fields():
    user = _user(password_reset_token_hash="abc")
    dumped = UserRead.model_validate(user).model_dump()

    assert "hashed_password" not in dumped
    assert "password_reset_token_hash" not in dumped
    assert "password_reset_expires_at" not in dumped
    assert dumped["email"] == "ana@example.com"
