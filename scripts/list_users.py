#!/usr/bin/env python3
"""Print every user with role and active flag."""
import sys
sys.path.insert(0, ".")

from tasktracker import create_app
from tasktracker.models.auth import User

app = create_app()
with app.app_context():
    users = User.query.order_by(User.id).all()
    if not users:
        print("No users found. Run scripts/seed_demo_data.py first.")
    for i, u in enumerate(users, 1):
        state = "active" if u.is_active else "inactive"
        print(f"    {i:>3}. {u.name or 'No name':.<30} {u.email:<40} {u.role:<10} {state}")
    print(f"    {'TOTAL':.<30} {len(users)}")
