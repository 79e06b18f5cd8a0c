"""Utility script to register a directory user and print an access token."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from notifyhub.application.use_cases.users import create_user
from notifyhub.domain.entities import Identity
from notifyhub.infrastructure.database import SessionLocal, initialize_database
from notifyhub.infrastructure.security import create_access_token


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for user creation."""

    parser = argparse.ArgumentParser(
        description="Register a user that can receive notifications.",
    )
    parser.add_argument("username", help="Unique username of the user")
    parser.add_argument(
        "--role",
        default="EMPLOYEE",
        help="ADMIN, HR or EMPLOYEE (default: EMPLOYEE)",
    )
    parser.add_argument(
        "--print-token",
        action="store_true",
        help="Print a bearer token for the new user.",
    )
    return parser.parse_args()


def main() -> None:
    """Create a user using the provided command line arguments."""

    args = parse_args()

    initialize_database()

    session = SessionLocal()
    try:
        user = create_user(session, username=args.username, role=args.role)
    except ValueError as exc:
        session.rollback()
        raise SystemExit(f"Could not create the user: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not store the user: {exc}") from exc
    else:
        print(
            "User created:\n"
            f"  ID: {user.id}\n"
            f"  Username: {user.username}\n"
            f"  Role: {user.role.value}"
        )
        if args.print_token:
            token = create_access_token(
                Identity(user_id=user.id, username=user.username, role=user.role)
            )
            print(f"  Token: {token}")
    finally:
        session.close()


if __name__ == "__main__":
    main()
