"""Read-only access to user accounts."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from numina_social.models.user import User

__all__ = ["UserRepository"]


class UserRepository:
    """Lookup of users owned by the account service."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id(self, user_id: int) -> User | None:
        """Return a user by identifier, or None if absent."""
        return self.session.get(User, user_id)

    def find_many(self, user_ids: Iterable[int]) -> dict[int, User]:
        """Return the users that exist among ``user_ids`` keyed by id."""
        ids = set(user_ids)
        if not ids:
            return {}
        result = self.session.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars()}
