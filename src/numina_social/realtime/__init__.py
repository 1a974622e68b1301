"""Live channel registry and the events pushed through it."""

from .channel import Channel, WebSocketChannel
from .registry import ConnectionRegistry

__all__ = ["Channel", "ConnectionRegistry", "WebSocketChannel"]
