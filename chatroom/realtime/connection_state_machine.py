"""
Session state machine for chat connections.

Tracks where a connection is in its lifecycle so the session can refuse
transitions that make no sense (chatting before naming, naming twice,
anything after close).
"""

from statemachine import State, StateMachine

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class ChatSessionStateMachine(StateMachine):
    """
    Lifecycle of one chat connection.

    States:
    - connected: open, waiting for a display name
    - authenticated: holds a unique display name and may chat
    - closed: terminal

    Transitions:
    - connected -> authenticated: authenticate
    - connected -> closed: close
    - authenticated -> closed: close
    """

    connected = State("Connected", initial=True)
    authenticated = State("Authenticated")
    closed = State("Closed", final=True)

    authenticate = connected.to(authenticated)
    close = connected.to(closed) | authenticated.to(closed)

    def __init__(self, connection_id: str):
        # on_enter_state runs during super().__init__() for the initial state
        self.connection_id = connection_id
        super().__init__()

    def on_enter_state(self, state: State, event=None, **kwargs) -> None:
        logger.debug(
            "Chat session state transition",
            connection_id=self.connection_id,
            trigger_event=str(event) if event else "initial",
            to_state=state.id,
        )

    @property
    def is_connected(self) -> bool:
        return self.current_state == self.connected

    @property
    def is_authenticated(self) -> bool:
        return self.current_state == self.authenticated

    @property
    def is_closed(self) -> bool:
        return self.current_state == self.closed
