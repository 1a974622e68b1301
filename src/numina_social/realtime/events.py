"""Event envelopes exchanged over the live messaging channel.

Every frame is a JSON object whose ``type`` field names the event kind:

    {"type": "new_message", "message": {...}}
    {"type": "message_read", "message_id": "...", "conversation_id": "...", "read_at": "..."}

Server-to-client events form the :data:`ServerEvent` union; frames sent by
clients are parsed with :func:`parse_client_event`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from numina_social.schemas.messaging import MessageOut


class NewMessageEvent(BaseModel):
    """A message was sent to the receiving user."""

    type: Literal["new_message"] = "new_message"
    message: MessageOut


class MessageDeliveredEvent(BaseModel):
    """Receipt sent to the author once the recipient acknowledged delivery."""

    type: Literal["message_delivered"] = "message_delivered"
    message_id: str
    conversation_id: str
    delivered_at: datetime


class MessageReadEvent(BaseModel):
    """Receipt sent to the author once the recipient read the message."""

    type: Literal["message_read"] = "message_read"
    message_id: str
    conversation_id: str
    read_at: datetime


class TypingIndicatorEvent(BaseModel):
    """Directed to the other participant only."""

    type: Literal["typing_indicator"] = "typing_indicator"
    conversation_id: str
    user_id: int
    typing: bool


class UserOnlineStatusEvent(BaseModel):
    """Broadcast when a user connects or disconnects."""

    type: Literal["user_online_status"] = "user_online_status"
    user_id: int
    online: bool
    last_seen: datetime | None = None


class ErrorEvent(BaseModel):
    """Diagnostic directed at a single client."""

    type: Literal["error"] = "error"
    message: str
    code: str


class ConnectedEvent(BaseModel):
    """Handshake acknowledgement sent once the session is registered."""

    type: Literal["connected"] = "connected"
    user_id: int


ServerEvent = Annotated[
    Union[
        NewMessageEvent,
        MessageDeliveredEvent,
        MessageReadEvent,
        TypingIndicatorEvent,
        UserOnlineStatusEvent,
        ErrorEvent,
        ConnectedEvent,
    ],
    Field(discriminator="type"),
]

_server_event_adapter: TypeAdapter[ServerEvent] = TypeAdapter(ServerEvent)


def encode_event(event: BaseModel) -> str:
    """Serialize an event to the JSON text frame sent over the channel."""
    return event.model_dump_json()


def decode_server_event(payload: str | bytes) -> BaseModel:
    """Parse a server event frame back into its model (used by clients and tests)."""
    return _server_event_adapter.validate_json(payload)


# Client -> server frames


class TypingFrame(BaseModel):
    type: Literal["typing"]
    conversation_id: str
    typing: bool = True


class DeliveredFrame(BaseModel):
    type: Literal["delivered"]
    message_id: str


class ReadFrame(BaseModel):
    type: Literal["read"]
    conversation_id: str


ClientEvent = Annotated[
    Union[TypingFrame, DeliveredFrame, ReadFrame],
    Field(discriminator="type"),
]

_client_event_adapter: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)


def parse_client_event(payload: str | bytes) -> TypingFrame | DeliveredFrame | ReadFrame:
    """Parse a frame received from a client.

    Raises:
        pydantic.ValidationError: If the frame is not JSON or names no known event.
    """
    return _client_event_adapter.validate_json(payload)
