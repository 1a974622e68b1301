"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import ErrorDetail, ErrorResponse
from .messaging import (
    BlockedUserOut,
    BlockUserResponse,
    ConversationListResponse,
    ConversationOut,
    ConversationParticipant,
    MessageListResponse,
    MessageOut,
    ReportMessageRequest,
    ReportMessageResponse,
    SendMessageRequest,
    SendMessageResponse,
    UnreadCountResponse,
)

__all__ = [
    "ErrorDetail", "ErrorResponse",
    "BlockedUserOut", "BlockUserResponse",
    "ConversationListResponse", "ConversationOut", "ConversationParticipant",
    "MessageListResponse", "MessageOut",
    "ReportMessageRequest", "ReportMessageResponse",
    "SendMessageRequest", "SendMessageResponse",
    "UnreadCountResponse",
]
