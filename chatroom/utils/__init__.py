"""Small shared helpers for the chatroom server."""
