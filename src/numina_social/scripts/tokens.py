"""Mint a development access token for a user.

Usage::

    python -m numina_social.scripts.tokens 42 --email athlete@example.com --create

With ``--create`` the user row is inserted if it does not exist yet, which is
handy against a fresh local database.
"""

from __future__ import annotations

import argparse
import logging

from sqlalchemy.orm import Session

from numina_social.core.logging_config import configure_logging
from numina_social.core.security import create_access_token
from numina_social.core.settings import settings
from numina_social.db.session import SessionLocal, create_tables
from numina_social.models import User

logger = logging.getLogger(__name__)


def ensure_user(db: Session, user_id: int, email: str, display_name: str | None = None) -> User:
    """Return the user with ``user_id``, inserting it first if missing."""
    user = db.get(User, user_id)
    if user is None:
        user = User(id=user_id, email=email, display_name=display_name)
        db.add(user)
        db.commit()
        logger.info("Created user %s <%s>", user_id, email)
    return user


def main(argv: list[str] | None = None) -> str:
    parser = argparse.ArgumentParser(description="Mint a JWT for the messaging API")
    parser.add_argument("user_id", type=int)
    parser.add_argument("--email", help="email for a user created with --create")
    parser.add_argument("--name", help="display name for a user created with --create")
    parser.add_argument(
        "--create",
        action="store_true",
        help="create missing tables and the user row before minting",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)
    if args.create:
        create_tables()
        db = SessionLocal()
        try:
            ensure_user(db, args.user_id, args.email or f"user{args.user_id}@example.com", args.name)
        finally:
            db.close()

    token = create_access_token(args.user_id)
    print(token)
    return token


if __name__ == "__main__":
    main()
