"""
Chatroom server package.

A real-time chat server: WebSocket sessions claim a unique display name,
messages are broadcast to every open connection and persisted so that newly
joined participants can replay the history written since they arrived.
"""

__version__ = "0.1.0"
