"""
Create or reset the admin account
Usage: python create_admin.py [--username admin] [--email admin@example.com] [--vtc-name "VTC Admin"]
The password is read from ADMIN_PASSWORD or prompted for.
"""
import argparse
import getpass
import logging
import os
import sys

from convoy import models  # noqa: F401
from convoy.database import Base, SessionLocal, engine
from convoy.models import User
from convoy.security_utils import hash_password

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)


def create_admin(username: str, email: str, password: str, vtc_name: str = None) -> User:
    """Create the admin user, replacing an existing account with the same username"""
    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            logger.info(f"⚠️ User {username} already exists. Resetting credentials...")
            user = existing
        else:
            user = User(username=username)
            db.add(user)

        user.email = email
        user.password_hash = hash_password(password)
        user.role = "admin"
        user.vtc_name = vtc_name
        db.commit()
        db.refresh(user)
        return user
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create or reset the admin account")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--email", default="admin@example.com")
    parser.add_argument("--vtc-name", default=None)
    args = parser.parse_args()

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    if len(password) < 8:
        logger.error("❌ Password must be at least 8 characters long")
        sys.exit(1)

    try:
        user = create_admin(args.username.strip().lower(), args.email.strip().lower(), password, args.vtc_name)
    except Exception as e:
        logger.error(f"❌ Error creating admin user: {e}")
        sys.exit(1)

    logger.info("🎉 Admin user ready!")
    logger.info(f"🔹 Username: {user.username}")
    logger.info(f"🔹 Email: {user.email}")
    logger.info(f"🔹 Role: {user.role}")


if __name__ == "__main__":
    main()
