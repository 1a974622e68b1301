# src/numina_social/models/message_report.py
"""Models tracking user reports against messages."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from numina_social.db.session import Base
from numina_social.db.time import UTCDateTime, utcnow

MAX_REPORT_REASON_LENGTH = 500


class ReportStatus(str, enum.Enum):
    """Moderation states; transitions after PENDING belong to the moderation workflow."""

    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    RESOLVED = "RESOLVED"


class MessageReport(Base):
    """A user's complaint about a message they received."""

    __tablename__ = "message_report"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    message_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("message.id"), nullable=False, index=True
    )
    reporter_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_account.id"), nullable=False, index=True
    )
    reason: Mapped[str] = mapped_column(String(MAX_REPORT_REASON_LENGTH), nullable=False)
    status: Mapped[ReportStatus] = mapped_column(
        Enum(ReportStatus, native_enum=False, length=20),
        default=ReportStatus.PENDING,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
