"""
Chat message model.

Append-only log of chat lines. Rows are immutable once written; the only
deletion is the bulk purge by username under the purge_on_disconnect
history policy.
"""

from sqlalchemy import Column, Integer, String, Text

from .base import Base


class ChatMessage(Base):
    """One persisted chat line."""

    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, nullable=False, index=True)
    ip = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    # Server-assigned, non-decreasing with insertion order
    time = Column(String(19), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<ChatMessage(id={self.id}, username='{self.username}', time='{self.time}')>"
