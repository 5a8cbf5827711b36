"""
Database models for the chatroom server.

Importing this package registers every table on the shared metadata.
"""

from .base import Base
from .chat_message import ChatMessage
from .visitor import Visitor

__all__ = ["Base", "ChatMessage", "Visitor"]
