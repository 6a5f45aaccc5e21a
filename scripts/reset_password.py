#!/usr/bin/env python3
"""
Job Tracker - Password Reset CLI

Reset a user's password from the command line and sign them out everywhere.

Usage:
    python scripts/reset_password.py user@email.com NewPassword123
"""
import sys
import os

# Add project root to path so we can import jobtracker modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from jobtracker.database import SessionLocal, init_db
from jobtracker.auth.service import auth_service, AuthServiceError


def reset_password(email: str, new_password: str):
    init_db()
    db = SessionLocal()

    try:
        user = auth_service.get_user_by_email(email, db)
        if not user:
            print(f"Error: No user found with email '{email}'")
            sys.exit(1)

        try:
            auth_service.update_password(user, new_password, db)
        except AuthServiceError as e:
            print(f"Error: {e}")
            sys.exit(1)

        print(f"Password reset successfully for {email}")
        print("All refresh tokens have been revoked. The user must log in again.")

    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python scripts/reset_password.py <email> <new_password>")
        print("Example: python scripts/reset_password.py user@example.com MyNewPass123")
        sys.exit(1)

    reset_password(sys.argv[1], sys.argv[2])
