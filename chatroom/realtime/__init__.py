"""Real-time chat: connections, sessions, broadcasting and keep-alive."""

from .connection_models import ChatConnection
from .connection_registry import ConnectionRegistry
from .connection_state_machine import ChatSessionStateMachine
from .keepalive_monitor import KeepAliveMonitor
from .message_broadcaster import Broadcaster
from .session import ChatSession
from .transport import ChatTransport, WebSocketTransport

__all__ = [
    "Broadcaster",
    "ChatConnection",
    "ChatSession",
    "ChatSessionStateMachine",
    "ChatTransport",
    "ConnectionRegistry",
    "KeepAliveMonitor",
    "WebSocketTransport",
]
