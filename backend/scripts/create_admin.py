"""Utility script to create the first admin user manually."""

from __future__ import annotations

import getpass
import sys

from sqlmodel import Session

from tourbook.auth import repository
from tourbook.auth.passwords import hash_password
from tourbook.auth.service import validate_new_password
from tourbook.auth.user_model import User, UserRole
from tourbook.db import get_engine, init_db
from tourbook.errors import ConflictError, ValidationError


def prompt_credentials() -> tuple[str, str, str]:
    """Prompt for name, email and password via stdin."""
    name = input("Name: ").strip()
    email = input("Email: ").strip()
    if not name or not email:
        print("Name and email are required.", file=sys.stderr)
        sys.exit(1)

    password = getpass.getpass("Password: ")
    password_confirm = getpass.getpass("Confirm password: ")
    try:
        validate_new_password(password, password_confirm)
    except ValidationError as exc:
        print(exc.message, file=sys.stderr)
        sys.exit(1)

    return name, email, password


def main() -> None:
    name, email, password = prompt_credentials()
    init_db()

    with Session(get_engine()) as session:
        try:
            user = repository.create(
                session,
                User(name=name, email=email, role=UserRole.ADMIN, hashed_password=hash_password(password)),
            )
        except ConflictError:
            print("A user with that email already exists; no admin was created.")
            return

        print(f"Admin created: {user.email} (id={user.id})")


if __name__ == "__main__":
    main()
