"""Persistence layer: the chat message log and visitor presence table."""

from .message_store import HistoryEntry, MessageStore, format_chat_line

__all__ = ["HistoryEntry", "MessageStore", "format_chat_line"]
