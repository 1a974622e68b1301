"""Data access helpers for user blocks."""
from __future__ import annotations

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from numina_social.db.time import utcnow
from numina_social.models.blocked_user import BlockedUser

__all__ = ["BlockedUserRepository"]


class BlockedUserRepository:
    """Persistence for the directional blocker -> blocked relation."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, blocker_id: int, blocked_id: int) -> BlockedUser | None:
        result = self.session.execute(
            select(BlockedUser).where(
                BlockedUser.blocker_id == blocker_id,
                BlockedUser.blocked_id == blocked_id,
            )
        )
        return result.scalars().first()

    def block(self, blocker_id: int, blocked_id: int) -> BlockedUser:
        """Create the block, or return the existing record for the pair."""
        existing = self.get(blocker_id, blocked_id)
        if existing is not None:
            return existing
        try:
            with self.session.begin_nested():
                block = BlockedUser(
                    blocker_id=blocker_id,
                    blocked_id=blocked_id,
                    created_at=utcnow(),
                )
                self.session.add(block)
                self.session.flush()
            return block
        except IntegrityError:
            existing = self.get(blocker_id, blocked_id)
            if existing is None:
                raise
            return existing

    def unblock(self, blocker_id: int, blocked_id: int) -> bool:
        """Delete the block if present; returns whether a row was removed."""
        result = self.session.execute(
            delete(BlockedUser).where(
                BlockedUser.blocker_id == blocker_id,
                BlockedUser.blocked_id == blocked_id,
            )
        )
        return result.rowcount > 0

    def is_blocked_either_way(self, user_id_a: int, user_id_b: int) -> bool:
        """Return True if either user has blocked the other."""
        result = self.session.execute(
            select(BlockedUser.id)
            .where(
                or_(
                    and_(BlockedUser.blocker_id == user_id_a, BlockedUser.blocked_id == user_id_b),
                    and_(BlockedUser.blocker_id == user_id_b, BlockedUser.blocked_id == user_id_a),
                )
            )
            .limit(1)
        )
        return result.first() is not None

    def list_blocked_by(self, blocker_id: int) -> list[BlockedUser]:
        result = self.session.execute(
            select(BlockedUser)
            .where(BlockedUser.blocker_id == blocker_id)
            .order_by(BlockedUser.created_at.desc())
        )
        return list(result.scalars())
