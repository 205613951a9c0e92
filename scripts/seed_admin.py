"""Create or promote an administrator account."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app
from models import db
from models.user import Role, User
from utils.timeutils import utcnow
from utils.validation import normalize_email


def seed_admin(email: str, password: str, name: str = "Administrator") -> tuple[User, str]:
    """Create the admin if missing, otherwise promote it and reset its password.

    Must run inside an application context.
    """

    email = normalize_email(email)
    admin = User.query.filter_by(email=email).first()
    if admin is None:
        admin = User(name=name, email=email)
        db.session.add(admin)
        action = "created"
    else:
        action = "updated"
    admin.role = Role.ADMIN
    admin.email_verified_at = admin.email_verified_at or utcnow()
    admin.set_password(password)
    db.session.commit()
    return admin, action


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", "admin@example.com"))
    parser.add_argument("--name", default="Administrator")
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    args = parser.parse_args()
    if not args.password:
        parser.error("--password or ADMIN_PASSWORD is required")

    app = create_app()
    with app.app_context():
        db.create_all()
        admin, action = seed_admin(args.email, args.password, args.name)
        print(f"Admin user {action}: {admin.email}")


if __name__ == "__main__":
    main()
