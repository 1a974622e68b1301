"""Repositories wrapping SQLAlchemy access for each messaging entity."""

from .block_repo import BlockedUserRepository
from .conversation_repo import ConversationRepository
from .message_repo import MessageRepository
from .report_repo import MessageReportRepository
from .user_repo import UserRepository

__all__ = [
    "BlockedUserRepository",
    "ConversationRepository",
    "MessageRepository",
    "MessageReportRepository",
    "UserRepository",
]
