"""Direct messaging Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from numina_social.models.message_report import ReportStatus


class MessageOut(BaseModel):
    """Schema for a message returned by the API and pushed over the live channel."""

    id: str
    conversation_id: str
    sender_id: int
    content: str
    sent_at: datetime
    delivered_at: datetime | None = None
    read_at: datetime | None = None
    deleted: bool = False

    model_config = ConfigDict(from_attributes=True)


class ConversationParticipant(BaseModel):
    """Public details of the other person in a conversation."""

    id: int
    name: str
    email: str


class ConversationOut(BaseModel):
    """Conversation summary as seen by one of its participants."""

    id: str
    participant_1_id: int
    participant_2_id: int
    last_message_at: datetime
    last_message: str | None = None
    unread_count: int = 0
    other_participant: ConversationParticipant | None = None


class SendMessageRequest(BaseModel):
    """Schema for sending a direct message.

    Content limits are enforced by the service so clients receive the stable
    error codes rather than a generic validation failure.
    """

    recipient_id: int = Field(..., description="User id of the recipient")
    content: str = Field(..., description="Plain-text message body (1-5000 characters)")


class SendMessageResponse(BaseModel):
    message: MessageOut
    conversation_id: str


class ConversationListResponse(BaseModel):
    conversations: list[ConversationOut]
    total: int
    page: int
    page_size: int


class MessageListResponse(BaseModel):
    messages: list[MessageOut]
    total: int
    page: int
    page_size: int


class UnreadCountResponse(BaseModel):
    count: int


class BlockUserResponse(BaseModel):
    blocked_user_id: int
    success: bool


class BlockedUserOut(BaseModel):
    """A block created by the current user."""

    id: str
    blocker_id: int
    blocked_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReportMessageRequest(BaseModel):
    reason: str = Field(..., description="Why the message is being reported (1-500 characters)")


class ReportMessageResponse(BaseModel):
    report_id: str
    status: ReportStatus
