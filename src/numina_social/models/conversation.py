# src/numina_social/models/conversation.py
"""Models describing one-to-one conversations between users."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from numina_social.db.session import Base
from numina_social.db.time import UTCDateTime, utcnow


def canonical_pair(user_id_a: int, user_id_b: int) -> tuple[int, int]:
    """Return the participant pair in storage order (lower id first).

    Every create and lookup goes through this so that a pair maps to one row
    regardless of who sent first.
    """
    if user_id_a <= user_id_b:
        return user_id_a, user_id_b
    return user_id_b, user_id_a


def _new_id() -> str:
    return str(uuid.uuid4())


class Conversation(Base):
    """The single thread shared by two users."""

    __tablename__ = "conversation"
    __table_args__ = (
        UniqueConstraint("participant_1_id", "participant_2_id", name="uq_conversation_pair"),
        CheckConstraint(
            "participant_1_id < participant_2_id",
            name="ck_conversation_canonical_order",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    participant_1_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id"), nullable=False, index=True
    )
    participant_2_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id"), nullable=False, index=True
    )
    last_message_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    archived_by_user_1: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    archived_by_user_2: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def participant_ids(self) -> tuple[int, int]:
        return self.participant_1_id, self.participant_2_id

    def has_participant(self, user_id: int) -> bool:
        """Return True if the user is one of the two participants."""
        return user_id in (self.participant_1_id, self.participant_2_id)

    def other_participant_id(self, user_id: int) -> int:
        """Return the id of the participant who is not ``user_id``."""
        if user_id == self.participant_1_id:
            return self.participant_2_id
        if user_id == self.participant_2_id:
            return self.participant_1_id
        raise ValueError(f"User {user_id} is not a participant of conversation {self.id}")

    def is_archived_for(self, user_id: int) -> bool:
        if user_id == self.participant_1_id:
            return self.archived_by_user_1
        if user_id == self.participant_2_id:
            return self.archived_by_user_2
        return False

    def set_archived_for(self, user_id: int, archived: bool) -> None:
        if user_id == self.participant_1_id:
            self.archived_by_user_1 = archived
        elif user_id == self.participant_2_id:
            self.archived_by_user_2 = archived
        else:
            raise ValueError(f"User {user_id} is not a participant of conversation {self.id}")
