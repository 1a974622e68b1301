"""Data access helpers for working with messages."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased

from numina_social.db.time import utcnow
from numina_social.models.conversation import Conversation
from numina_social.models.message import Message

__all__ = ["MessageRepository"]


class MessageRepository:
    """Thin wrapper around database access for message entities.

    Every read path skips soft-deleted rows.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def create(self, *, conversation_id: str, sender_id: int, content: str) -> Message:
        """Insert a new message and return the persisted ORM instance."""
        now = utcnow()
        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            sent_at=now,
            created_at=now,
            deleted=False,
        )
        self.session.add(message)
        self.session.flush()
        return message

    def get_by_id(self, message_id: str) -> Message | None:
        """Return a visible (not deleted) message by identifier."""
        result = self.session.execute(
            select(Message).where(Message.id == message_id, Message.deleted.is_(False))
        )
        return result.scalars().first()

    def list_by_conversation(
        self,
        conversation_id: str,
        *,
        offset: int,
        limit: int,
    ) -> tuple[list[Message], int]:
        """Return a page of visible messages, oldest first, and the visible total."""
        criteria = (Message.conversation_id == conversation_id, Message.deleted.is_(False))
        total = self.session.execute(
            select(func.count()).select_from(Message).where(*criteria)
        ).scalar_one()
        result = self.session.execute(
            select(Message)
            .where(*criteria)
            .order_by(Message.sent_at.asc(), Message.created_at.asc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars()), total

    def mark_delivered(self, message: Message, delivered_at: datetime) -> bool:
        """Stamp ``delivered_at`` once; never earlier than ``sent_at``."""
        if message.delivered_at is not None:
            return False
        message.delivered_at = max(delivered_at, message.sent_at)
        self.session.flush()
        return True

    def mark_conversation_read(
        self,
        conversation_id: str,
        reader_id: int,
        read_at: datetime,
    ) -> list[Message]:
        """Mark every unread message addressed to ``reader_id`` as read.

        Messages that were never acknowledged as delivered get the same
        ``delivered_at`` so that read never precedes delivery.

        Returns:
            The messages whose state changed.
        """
        result = self.session.execute(
            select(Message).where(
                Message.conversation_id == conversation_id,
                Message.sender_id != reader_id,
                Message.read_at.is_(None),
                Message.deleted.is_(False),
            )
        )
        changed: list[Message] = []
        for message in result.scalars():
            stamp = max(read_at, message.delivered_at or message.sent_at)
            if message.delivered_at is None:
                message.delivered_at = stamp
            message.read_at = stamp
            changed.append(message)
        if changed:
            self.session.flush()
        return changed

    def soft_delete(self, message: Message) -> bool:
        if message.deleted:
            return False
        message.deleted = True
        self.session.flush()
        return True

    def count_unread_for_user(self, user_id: int) -> int:
        """Count visible unread messages sent to ``user_id`` across their conversations."""
        user_conversations = select(Conversation.id).where(
            (Conversation.participant_1_id == user_id) | (Conversation.participant_2_id == user_id)
        )
        return self.session.execute(
            select(func.count())
            .select_from(Message)
            .where(
                Message.conversation_id.in_(user_conversations),
                Message.sender_id != user_id,
                Message.read_at.is_(None),
                Message.deleted.is_(False),
            )
        ).scalar_one()

    def unread_counts_by_conversation(
        self, conversation_ids: Sequence[str], user_id: int
    ) -> dict[str, int]:
        """Count unread messages addressed to ``user_id`` per conversation.

        Conversations with nothing unread are absent from the result.
        """
        if not conversation_ids:
            return {}
        result = self.session.execute(
            select(Message.conversation_id, func.count())
            .where(
                Message.conversation_id.in_(conversation_ids),
                Message.sender_id != user_id,
                Message.read_at.is_(None),
                Message.deleted.is_(False),
            )
            .group_by(Message.conversation_id)
        )
        return {conversation_id: count for conversation_id, count in result}

    def latest_for_conversations(self, conversation_ids: Sequence[str]) -> dict[str, Message]:
        """Return the newest visible message of each conversation in ``conversation_ids``."""
        if not conversation_ids:
            return {}
        ranked = (
            select(
                Message,
                func.row_number()
                .over(
                    partition_by=Message.conversation_id,
                    order_by=[Message.sent_at.desc(), Message.created_at.desc()],
                )
                .label("position"),
            )
            .where(Message.conversation_id.in_(conversation_ids), Message.deleted.is_(False))
            .subquery()
        )
        newest = aliased(Message, ranked)
        result = self.session.execute(select(newest).where(ranked.c.position == 1))
        return {message.conversation_id: message for message in result.scalars()}
