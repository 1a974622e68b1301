# src/numina_social/models/blocked_user.py
"""Directional block relation between two users."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from numina_social.db.session import Base
from numina_social.db.time import UTCDateTime, utcnow


class BlockedUser(Base):
    """Record that ``blocker_id`` blocked ``blocked_id``.

    Sending is refused when a record exists in either direction.
    """

    __tablename__ = "blocked_user"
    __table_args__ = (UniqueConstraint("blocker_id", "blocked_id", name="uq_block_pair"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    blocker_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id"), nullable=False, index=True
    )
    blocked_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
