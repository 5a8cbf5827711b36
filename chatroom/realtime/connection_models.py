"""
Data models for connection management.

A ChatConnection is created when a transport opens and lives in the
connection registry until the session closes. Its username is only
meaningful once authenticated is True.
"""

import uuid
from dataclasses import dataclass, field

from .transport import ChatTransport


def new_connection_id() -> str:
    return str(uuid.uuid4())


@dataclass(eq=False)
class ChatConnection:
    """
    One live client connection.

    Identity is the object itself (eq=False), so two connections that happen
    to hold the same fields are still distinct registry entries.
    """

    transport: ChatTransport
    remote_address: str
    connection_id: str = field(default_factory=new_connection_id)
    username: str | None = None
    authenticated: bool = False
    join_time: str | None = None  # chat timestamp of the successful name claim

    def is_open(self) -> bool:
        return self.transport.is_open()

    def to_dict(self) -> dict[str, str | bool | None]:
        return {
            "connection_id": self.connection_id,
            "remote_address": self.remote_address,
            "username": self.username,
            "authenticated": self.authenticated,
            "join_time": self.join_time,
        }
