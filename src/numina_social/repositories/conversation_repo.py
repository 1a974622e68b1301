"""Data access helpers for working with conversations."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from numina_social.db.time import utcnow
from numina_social.models.conversation import Conversation, canonical_pair

__all__ = ["ConversationRepository"]


class ConversationRepository:
    """Thin wrapper around database access for conversation entities.

    Writes only flush; committing is left to the service so that a message
    insert and the ``last_message_at`` bump land in one transaction.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, conversation_id: str) -> Conversation | None:
        """Return a conversation by identifier."""
        return self.session.get(Conversation, conversation_id)

    def find_by_participants(self, user_id_a: int, user_id_b: int) -> Conversation | None:
        """Return the conversation for an unordered pair of users."""
        p1, p2 = canonical_pair(user_id_a, user_id_b)
        result = self.session.execute(
            select(Conversation).where(
                Conversation.participant_1_id == p1,
                Conversation.participant_2_id == p2,
            )
        )
        return result.scalars().first()

    def create(self, user_id_a: int, user_id_b: int) -> Conversation:
        """Insert a conversation for the pair in canonical order.

        Raises:
            IntegrityError: If a row for the pair already exists.
        """
        p1, p2 = canonical_pair(user_id_a, user_id_b)
        now = utcnow()
        conversation = Conversation(
            participant_1_id=p1,
            participant_2_id=p2,
            last_message_at=now,
            created_at=now,
        )
        self.session.add(conversation)
        self.session.flush()
        return conversation

    def get_or_create(self, user_id_a: int, user_id_b: int) -> tuple[Conversation, bool]:
        """Find the pair's conversation or create it, tolerating a concurrent creator.

        The insert runs in a SAVEPOINT; losing the race on the unique pair
        constraint rolls back only that savepoint and the winner's row is read.
        """
        conversation = self.find_by_participants(user_id_a, user_id_b)
        if conversation is not None:
            return conversation, False
        try:
            with self.session.begin_nested():
                conversation = self.create(user_id_a, user_id_b)
            return conversation, True
        except IntegrityError:
            conversation = self.find_by_participants(user_id_a, user_id_b)
            if conversation is None:
                raise
            return conversation, False

    def list_for_user(
        self,
        user_id: int,
        *,
        offset: int,
        limit: int,
        include_archived: bool = False,
    ) -> tuple[list[Conversation], int]:
        """Return a page of the user's conversations (latest activity first) and the total."""
        criteria = [
            or_(
                Conversation.participant_1_id == user_id,
                Conversation.participant_2_id == user_id,
            )
        ]
        if not include_archived:
            criteria.append(
                or_(
                    and_(
                        Conversation.participant_1_id == user_id,
                        Conversation.archived_by_user_1.is_(False),
                    ),
                    and_(
                        Conversation.participant_2_id == user_id,
                        Conversation.archived_by_user_2.is_(False),
                    ),
                )
            )

        total = self.session.execute(
            select(func.count()).select_from(Conversation).where(*criteria)
        ).scalar_one()
        result = self.session.execute(
            select(Conversation)
            .where(*criteria)
            .order_by(Conversation.last_message_at.desc(), Conversation.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars()), total

    def touch_last_message(self, conversation: Conversation, timestamp: datetime) -> bool:
        """Advance ``last_message_at``; earlier timestamps are ignored."""
        if conversation.last_message_at is not None and timestamp <= conversation.last_message_at:
            return False
        conversation.last_message_at = timestamp
        self.session.flush()
        return True

    def set_archived(self, conversation: Conversation, user_id: int, archived: bool) -> bool:
        """Set the per-participant archived flag; returns whether it changed."""
        if conversation.is_archived_for(user_id) == archived:
            return False
        conversation.set_archived_for(user_id, archived)
        self.session.flush()
        return True
