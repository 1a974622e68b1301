"""HTTP and WebSocket API for the messaging backend."""
