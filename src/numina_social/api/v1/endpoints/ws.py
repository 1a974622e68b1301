"""Live messaging WebSocket endpoint.

Connect with ``ws://<host>/api/v1/ws/messages?token=<JWT>``. After the
``connected`` acknowledgement the server pushes events (see
:mod:`numina_social.realtime.events`) and accepts ``typing``, ``delivered``
and ``read`` frames from the client.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError as FrameValidationError

from numina_social.api.v1.dependencies import SessionFactoryDep
from numina_social.core.security import InvalidTokenError, decode_access_token
from numina_social.errors import MessagingError
from numina_social.models import User
from numina_social.realtime.channel import WebSocketChannel
from numina_social.realtime.events import (
    ConnectedEvent,
    DeliveredFrame,
    TypingFrame,
    encode_event,
    parse_client_event,
)
from numina_social.realtime.registry import ConnectionRegistry
from numina_social.services.messaging import MessagingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


async def _handle_frame(
    raw: str,
    user_id: int,
    service: MessagingService,
    registry: ConnectionRegistry,
) -> None:
    try:
        frame = parse_client_event(raw)
    except FrameValidationError:
        logger.debug("Rejected malformed frame from user %s", user_id)
        await registry.send_error(user_id, "Unrecognized or malformed event", "INVALID_EVENT")
        return

    try:
        if isinstance(frame, TypingFrame):
            recipient_id = await service.typing_recipient(frame.conversation_id, user_id)
            await registry.send_typing_indicator(
                frame.conversation_id, user_id, recipient_id, frame.typing
            )
        elif isinstance(frame, DeliveredFrame):
            await service.mark_as_delivered(frame.message_id, user_id)
        else:
            await service.mark_as_read(frame.conversation_id, user_id)
    except MessagingError as exc:
        await registry.send_error(user_id, exc.message, exc.code)


@router.websocket("/ws/messages")
async def messages_socket(websocket: WebSocket, session_factory: SessionFactoryDep) -> None:
    """Authenticate, register the session and serve it until the client leaves.

    No database session is held while waiting for the next frame: the user
    lookup and every inbound frame each run in a session of their own.
    """
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        user_id = decode_access_token(token)
    except InvalidTokenError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    with session_factory() as db:
        known_user = db.get(User, user_id) is not None
    if not known_user:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    registry: ConnectionRegistry = websocket.app.state.connection_registry
    await websocket.accept()
    channel = WebSocketChannel(websocket)
    await registry.connect(user_id, channel)

    try:
        await channel.send_text(encode_event(ConnectedEvent(user_id=user_id)))
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
            raw = message.get("text")
            if raw is None:
                logger.debug("Rejected binary frame from user %s", user_id)
                await registry.send_error(user_id, "Only text frames are accepted", "INVALID_EVENT")
                continue
            with session_factory() as db:
                await _handle_frame(raw, user_id, MessagingService(db, notifier=registry), registry)
    except WebSocketDisconnect as exc:
        logger.debug("WebSocket for user %s closed by client (code=%s)", user_id, exc.code)
    finally:
        await registry.disconnect(user_id, channel)
