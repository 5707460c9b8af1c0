# Admin bootstrap: admins cannot sign up through the API, so the account is provisioned here.
#
#   python -m rentalhub.create_admin --email admin@example.com --password s3cretpass
#
# Re-running with an existing email resets that account's password and makes sure it is an active admin.
from __future__ import annotations

import argparse
import logging
import os

from sqlalchemy.orm import Session

from . import models
from .db import Base, SessionLocal, engine, transaction
from .enums import Role
from .logging_config import configure_logging
from .routes.auth import hash_password

logger = logging.getLogger("rentalhub.admin")

DEFAULT_ADMIN_EMAIL = "admin@rentalhub.com"
DEFAULT_ADMIN_PASSWORD = "admin123"


def create_admin(db: Session, email: str, password: str) -> models.User:
    """Create the admin account, or update its password if the email already exists."""
    email = email.strip().lower()
    with transaction(db):
        user = db.query(models.User).filter(models.User.email == email).first()
        if user is None:
            user = models.User(
                email=email,
                password_hash=hash_password(password),
                first_name="Admin",
                last_name="User",
                role=Role.ADMIN,
                is_active=True,
            )
            db.add(user)
            created = True
        else:
            user.password_hash = hash_password(password)
            user.role = Role.ADMIN
            user.is_active = True
            created = False
    db.refresh(user)
    logger.info("admin.created" if created else "admin.updated", extra={"user_id": user.id})
    return user


def main() -> None:
    p = argparse.ArgumentParser(description="Create or update the RentalHub admin account")
    p.add_argument("--email", default=os.getenv("ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL))
    p.add_argument("--password", default=os.getenv("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD))
    args = p.parse_args()

    configure_logging()
    if os.getenv("DATABASE_URL", "sqlite:///./data.db").startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        user = create_admin(db, args.email, args.password)
    finally:
        db.close()
    print({"ok": True, "email": user.email, "id": user.id})


if __name__ == "__main__":
    main()
