"""In-process registry of live messaging channels.

The registry maps each connected user id to exactly one channel and pushes
events to it with at-most-once, best-effort semantics: there is no retry and no
queue. Persisted messages and read state are the source of truth; a failed
push is logged and otherwise ignored.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from pydantic import BaseModel

from numina_social.db.time import utcnow
from numina_social.realtime.channel import Channel
from numina_social.realtime.events import (
    ErrorEvent,
    MessageDeliveredEvent,
    MessageReadEvent,
    NewMessageEvent,
    TypingIndicatorEvent,
    UserOnlineStatusEvent,
    encode_event,
)
from numina_social.schemas.messaging import MessageOut

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Holds at most one live channel per user id and fans events out to them.

    Mutations of the map are serialized by an ``asyncio.Lock``; lookups and
    sends read the map without it. The lock is never held while a frame is
    being written.
    """

    def __init__(self) -> None:
        self._connections: dict[int, Channel] = {}
        self._lock = asyncio.Lock()

    # Session lifecycle

    async def connect(self, user_id: int, channel: Channel) -> None:
        """Register ``channel`` for ``user_id``, replacing any previous one.

        The replaced channel is only dropped from the map; its transport is
        left for its own receive loop to close.
        """
        async with self._lock:
            previous = self._connections.get(user_id)
            self._connections[user_id] = channel
        if previous is not None and previous is not channel:
            logger.info("User %s reconnected; previous channel evicted", user_id)
        else:
            logger.info("User %s connected", user_id)

        await self.broadcast(
            UserOnlineStatusEvent(user_id=user_id, online=True, last_seen=None),
            exclude=user_id,
        )

    async def disconnect(self, user_id: int, channel: Channel | None = None) -> bool:
        """Remove the user's channel and announce them offline.

        When ``channel`` is given the entry is removed only if it is still the
        registered one, so a stale session shutting down cannot evict the
        session that replaced it.

        Returns:
            True if an entry was removed.
        """
        removed = await self._remove(user_id, channel)
        if not removed:
            return False
        logger.info("User %s disconnected", user_id)
        await self.broadcast(
            UserOnlineStatusEvent(user_id=user_id, online=False, last_seen=utcnow()),
            exclude=user_id,
        )
        return True

    async def shutdown(self) -> None:
        """Drop every registered channel and close the transports best-effort."""
        async with self._lock:
            channels = list(self._connections.items())
            self._connections.clear()
        for user_id, channel in channels:
            try:
                await channel.close(code=1001)
            except Exception:  # noqa: BLE001 - shutdown continues past broken transports
                logger.debug("Error closing channel for user %s during shutdown", user_id, exc_info=True)
        logger.info("Connection registry shut down (%d channels closed)", len(channels))

    # Delivery

    async def send_to_user(self, user_id: int, event: BaseModel) -> bool:
        """Push ``event`` to the user's channel if they are connected.

        A transmission failure counts as an implicit disconnect. Never raises.

        Returns:
            True if the frame was written.
        """
        channel = self._connections.get(user_id)
        if channel is None or channel.closed_for_send:
            return False
        try:
            await channel.send_text(encode_event(event))
        except Exception:  # noqa: BLE001 - delivery is best-effort
            logger.warning(
                "Failed to push %s to user %s; dropping channel",
                getattr(event, "type", type(event).__name__),
                user_id,
                exc_info=True,
            )
            try:
                await self.disconnect(user_id, channel)
            except Exception:  # noqa: BLE001
                logger.exception("Error while dropping channel for user %s", user_id)
            return False
        logger.debug("Pushed %s to user %s", getattr(event, "type", "event"), user_id)
        return True

    async def broadcast(self, event: BaseModel, exclude: int | None = None) -> int:
        """Push ``event`` to every connected user except ``exclude``.

        A failing channel is evicted without a further status broadcast and
        does not stop delivery to the others.

        Returns:
            Number of channels the frame was written to.
        """
        payload = encode_event(event)
        delivered = 0
        for user_id, channel in list(self._connections.items()):
            if user_id == exclude:
                continue
            try:
                if channel.closed_for_send:
                    continue
                await channel.send_text(payload)
                delivered += 1
            except Exception:  # noqa: BLE001 - delivery is best-effort
                logger.warning("Error broadcasting to user %s", user_id, exc_info=True)
                await self._remove(user_id, channel)
        return delivered

    # Introspection

    def is_user_online(self, user_id: int) -> bool:
        return user_id in self._connections

    def connection_count(self) -> int:
        return len(self._connections)

    def online_user_ids(self) -> list[int]:
        return list(self._connections)

    # Messaging events

    async def notify_new_message(self, recipient_id: int, message: MessageOut) -> bool:
        return await self.send_to_user(recipient_id, NewMessageEvent(message=message))

    async def notify_message_delivered(
        self, sender_id: int, message_id: str, conversation_id: str, delivered_at: datetime
    ) -> bool:
        return await self.send_to_user(
            sender_id,
            MessageDeliveredEvent(
                message_id=message_id,
                conversation_id=conversation_id,
                delivered_at=delivered_at,
            ),
        )

    async def notify_message_read(
        self, sender_id: int, message_id: str, conversation_id: str, read_at: datetime
    ) -> bool:
        return await self.send_to_user(
            sender_id,
            MessageReadEvent(message_id=message_id, conversation_id=conversation_id, read_at=read_at),
        )

    async def send_typing_indicator(
        self, conversation_id: str, user_id: int, recipient_id: int, typing: bool
    ) -> bool:
        return await self.send_to_user(
            recipient_id,
            TypingIndicatorEvent(conversation_id=conversation_id, user_id=user_id, typing=typing),
        )

    async def send_error(self, user_id: int, message: str, code: str) -> bool:
        return await self.send_to_user(user_id, ErrorEvent(message=message, code=code))

    async def _remove(self, user_id: int, channel: Channel | None) -> bool:
        async with self._lock:
            current = self._connections.get(user_id)
            if current is None:
                return False
            if channel is not None and current is not channel:
                return False
            del self._connections[user_id]
            return True
