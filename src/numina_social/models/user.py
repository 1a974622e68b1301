# src/numina_social/models/user.py
"""SQLAlchemy model for platform user accounts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from numina_social.db.session import Base
from numina_social.db.time import UTCDateTime, utcnow


class User(Base):
    """Account owned by the authentication service.

    The messaging core only reads this table: it resolves user existence and
    the display details shown next to a conversation.
    """

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    @property
    def public_name(self) -> str:
        """Return the display name, falling back to the email local part."""
        if self.display_name:
            return self.display_name
        return self.email.split("@", 1)[0]
