"""Transport handles the connection registry can push frames through."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from fastapi import WebSocket
from starlette.websockets import WebSocketState


@runtime_checkable
class Channel(Protocol):
    """One open bidirectional session belonging to a single user."""

    @property
    def closed_for_send(self) -> bool:
        """True once no further frames can be written."""
        ...

    async def send_text(self, data: str) -> None:
        """Write one text frame; raises if the transport failed."""
        ...

    async def close(self, code: int = 1000) -> None:
        ...


class WebSocketChannel:
    """Adapts a Starlette/FastAPI ``WebSocket`` to :class:`Channel`."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    @property
    def closed_for_send(self) -> bool:
        return (
            self.websocket.application_state != WebSocketState.CONNECTED
            or self.websocket.client_state != WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)

    async def close(self, code: int = 1000) -> None:
        if not self.closed_for_send:
            await self.websocket.close(code=code)

    def __repr__(self) -> str:
        client = self.websocket.client
        return f"WebSocketChannel({client.host}:{client.port})" if client else "WebSocketChannel()"
