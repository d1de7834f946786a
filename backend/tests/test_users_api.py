from __future__ import annotations

from sqlmodel import Session, select

from tourbook.audit.models import AuditLog
from tourbook.auth.user_model import UserRole

USERS = "/api/v1/users/"
ME = "/api/v1/users/me"


def _actions(engine) -> list[str]:
    with Session(engine) as s:
        return list(s.exec(select(AuditLog.action)).all())


# —————— Autoservicio ——————


def test_me_returns_sanitized_profile(client, make_user, auth_headers):
    user = make_user(email="ana@example.com", name="Ana")

    response = client.get(ME, headers=auth_headers(user.id))

    assert response.status_code == 200
    payload = response.json()["data"]["user"]
    assert payload["name"] == "Ana"
    assert payload["email"] == "ana@example.com"
    assert "hashed_password" not in payload
    assert "password_reset_token_hash" not in payload


def test_update_me_refuses_password_fields(client, make_user, auth_headers):
    user = make_user()

    response = client.patch(
        "/api/v1/users/updateMe",
        headers=auth_headers(user.id),
        json={"password": "newsecret456", "passwordConfirm": "newsecret456"},
    )

    assert response.status_code == 400
    assert "/updateMyPassword" in response.json()["message"]


def test_update_me_changes_name_but_not_role(client, make_user, auth_headers, fetch_user, test_engine):
    user = make_user(name="Ana")

    response = client.patch(
        "/api/v1/users/updateMe",
        headers=auth_headers(user.id),
        json={"name": "Ana María", "role": "admin"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["user"]["name"] == "Ana María"
    stored = fetch_user(user.id)
    assert stored.name == "Ana María"
    assert stored.role == UserRole.USER
    assert "users.update_me" in _actions(test_engine)


def test_update_me_with_taken_email_conflicts(client, make_user, auth_headers):
    make_user(email="taken@example.com")
    user = make_user(email="ana@example.com")

    response = client.patch(
        "/api/v1/users/updateMe",
        headers=auth_headers(user.id),
        json={"email": "taken@example.com"},
    )

    assert response.status_code == 409


def test_delete_me_deactivates_the_account(client, make_user, auth_headers, fetch_user):
    user = make_user(email="ana@example.com", password="secret123")
    headers = auth_headers(user.id)

    response = client.delete("/api/v1/users/deleteMe", headers=headers)

    assert response.status_code == 204
    stored = fetch_user(user.id)
    assert stored is not None
    assert stored.active is False
    assert client.get(ME, headers=headers).status_code == 401
    login = client.post("/api/v1/users/login", json={"email": "ana@example.com", "password": "secret123"})
    assert login.status_code == 401


# —————— Administración ——————


def test_admin_creates_user_with_role(client, make_user, auth_headers, test_engine):
    admin = make_user(email="admin@example.com", role=UserRole.ADMIN)

    response = client.post(
        USERS,
        headers=auth_headers(admin.id),
        json={
            "name": "Guía",
            "email": "guide@example.com",
            "password": "secret123",
            "passwordConfirm": "secret123",
            "role": "guide",
        },
    )

    assert response.status_code == 201
    assert response.json()["data"]["user"]["role"] == "guide"
    assert "users.create" in _actions(test_engine)


def test_non_admin_cannot_create_users(client, make_user, auth_headers):
    user = make_user(role=UserRole.LEAD_GUIDE)

    response = client.post(
        USERS,
        headers=auth_headers(user.id),
        json={
            "name": "Otro",
            "email": "other@example.com",
            "password": "secret123",
            "passwordConfirm": "secret123",
            "role": "admin",
        },
    )

    assert response.status_code == 403


def test_admin_get_missing_user(client, make_user, auth_headers):
    admin = make_user(email="admin@example.com", role=UserRole.ADMIN)

    response = client.get(f"{USERS}9999", headers=auth_headers(admin.id))

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_admin_updates_role(client, make_user, auth_headers, fetch_user):
    admin = make_user(email="admin@example.com", role=UserRole.ADMIN)
    user = make_user(email="ana@example.com")

    response = client.patch(f"{USERS}{user.id}", headers=auth_headers(admin.id), json={"role": "lead-guide"})

    assert response.status_code == 200
    assert fetch_user(user.id).role == UserRole.LEAD_GUIDE


def test_admin_cannot_set_passwords(client, make_user, auth_headers):
    admin = make_user(email="admin@example.com", role=UserRole.ADMIN)
    user = make_user(email="ana@example.com")

    response = client.patch(
        f"{USERS}{user.id}",
        headers=auth_headers(admin.id),
        json={"password": "newsecret456", "passwordConfirm": "newsecret456"},
    )

    assert response.status_code == 400


def test_admin_delete_is_a_soft_delete(client, make_user, auth_headers, fetch_user, test_engine):
    admin = make_user(email="admin@example.com", role=UserRole.ADMIN)
    user = make_user(email="ana@example.com")
    headers = auth_headers(admin.id)

    assert client.delete(f"{USERS}{user.id}", headers=headers).status_code == 204

    stored = fetch_user(user.id)
    assert stored is not None
    assert stored.active is False
    assert client.get(f"{USERS}{user.id}", headers=headers).status_code == 404
    assert [u["id"] for u in client.get(USERS, headers=headers).json()["data"]["users"]] == [admin.id]
    assert "users.deactivate" in _actions(test_engine)


def test_list_users_paginates(client, make_user, auth_headers):
    admin = make_user(email="admin@example.com", role=UserRole.ADMIN)
    for i in range(3):
        make_user(email=f"user{i}@example.com")

    response = client.get(USERS, headers=auth_headers(admin.id), params={"limit": 2, "offset": 1})

    assert response.status_code == 200
    assert response.json()["results"] == 2
