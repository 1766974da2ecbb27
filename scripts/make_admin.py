#!/usr/bin/env python3
"""
Promote an existing user to ADMIN.

Usage:
    python scripts/make_admin.py developer1@taskmanager.com
"""

import argparse
import sys

sys.path.insert(0, ".")

from tasktracker import create_app
from tasktracker.models import db
from tasktracker.models.auth import ROLE_ADMIN, User
from tasktracker.services.user_service import normalize_email


def main():
    parser = argparse.ArgumentParser(description="Promote a user to ADMIN")
    parser.add_argument("email")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        email = normalize_email(args.email)
        user = User.query.filter_by(email=email).first()
        if user is None:
            print(f"❌ No user with email {email}")
            sys.exit(1)
        if user.role == ROLE_ADMIN:
            print(f"ℹ️  {user.name or user.email} is already ADMIN")
            return
        user.role = ROLE_ADMIN
        db.session.commit()
        print(f"✅ Updated {user.name or user.email} to ADMIN role")


if __name__ == "__main__":
    main()
