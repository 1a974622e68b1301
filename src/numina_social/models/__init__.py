# src/numina_social/models/__init__.py
"""SQLAlchemy models for the messaging subsystem."""

from .blocked_user import BlockedUser
from .conversation import Conversation, canonical_pair
from .message import MAX_MESSAGE_LENGTH, Message
from .message_report import MAX_REPORT_REASON_LENGTH, MessageReport, ReportStatus
from .user import User

__all__ = [
    "BlockedUser",
    "Conversation", "canonical_pair",
    "Message", "MAX_MESSAGE_LENGTH",
    "MessageReport", "ReportStatus", "MAX_REPORT_REASON_LENGTH",
    "User",
]
