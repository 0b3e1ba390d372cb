"""
Seed a fresh installation.

Creates the schema, then the platform administrator account when no
administrator exists yet, and prints a bearer token for it.
"""

from __future__ import annotations

import argparse

from sqlalchemy.orm import Session

from lumina.core.security import create_access_token
from lumina.db.session import SessionLocal, create_tables
from lumina.domain import User, UserRole, new_id
from lumina.repositories import SqlContentStore

ADMIN_EMAIL = "admin@lumina.io"
ADMIN_NAME = "Platform Overseer"
ADMIN_BIO = "Guardian of the Lumina editorial standards."


def seed_admin(db: Session, email: str = ADMIN_EMAIL, name: str = ADMIN_NAME) -> User:
    """Return the administrator account, creating it if none exists.

    Args:
        db: Database session

    Returns:
        The existing or newly created administrator
    """
    store = SqlContentStore(db)
    existing = store.get_user_by_email(email)
    if existing is not None:
        return existing

    admin = next((user for user in store.list_users() if user.is_admin), None)
    if admin is not None:
        return admin

    admin = User(
        id=new_id(),
        email=email,
        name=name,
        role=UserRole.ADMIN,
        bio=ADMIN_BIO,
        is_approved=True,
    )
    store.save_user(admin)
    print(f"Created administrator {admin.email} ({admin.id})")
    return admin


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", default=ADMIN_EMAIL)
    parser.add_argument("--name", default=ADMIN_NAME)
    args = parser.parse_args(argv)

    create_tables()
    db = SessionLocal()
    try:
        admin = seed_admin(db, email=args.email, name=args.name)
        print(f"Access token for {admin.email}:")
        print(create_access_token(admin.id))
    finally:
        db.close()


if __name__ == "__main__":
    main()
