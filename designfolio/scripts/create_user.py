"""
Create an account directly in the database. Run from project root:
  python -m designfolio.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m designfolio.scripts.create_user alice alice@example.com 'Str0ng!Pass' designer
Admin access is granted by listing the email in ADMIN_EMAILS, not by role.
"""
import argparse
import sys

from pydantic import ValidationError

from designfolio.core.config import get_settings
from designfolio.core.database import SessionLocal
from designfolio.core.security import hash_password
from designfolio.models.user import User
from designfolio.schemas.auth import RegisterRequest


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a Designfolio user.")
    parser.add_argument("username", help="Username (3-50 chars: letters, digits, _ or -)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (8-128 chars, mixed case, digit, symbol)")
    parser.add_argument("role", nargs="?", default="viewer", choices=["designer", "viewer"])
    args = parser.parse_args()

    try:
        body = RegisterRequest(
            username=args.username,
            email=args.email,
            password=args.password,
            role=args.role,
        )
    except ValidationError as e:
        for err in e.errors():
            print(err["msg"], file=sys.stderr)
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        existing = (
            db.query(User.id)
            .filter((User.username == body.username) | (User.email == body.email))
            .first()
        )
        if existing:
            print(f"User '{body.username}' or '{body.email}' already exists.", file=sys.stderr)
            return 1
        user = User(
            username=body.username,
            email=body.email,
            password_hash=hash_password(body.password, settings.BCRYPT_ROUNDS),
            role=body.role.value,
        )
        db.add(user)
        db.commit()
        admin_note = " (admin)" if settings.is_admin(user.email) else ""
        print(f"Created user '{user.username}' with role '{user.role}'{admin_note}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
