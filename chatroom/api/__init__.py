"""HTTP and WebSocket routes for the chatroom server."""
