"""
Rename service for the chatroom server.

Moves a display name from one authenticated connection to a new value on
behalf of an external request. The registry check-and-set is atomic with
respect to concurrent name claims; the visitor row update and the system
notice follow.
"""

from dataclasses import dataclass
from enum import Enum

from ..error_types import ErrorMessages
from ..exceptions import ConnectionNotFoundError, DatabaseError, DuplicateNameError
from ..persistence.message_store import MessageStore
from ..realtime import messages
from ..realtime.connection_registry import ConnectionRegistry
from ..realtime.message_broadcaster import Broadcaster
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once

logger = get_logger(__name__)


class RenameStatus(Enum):
    """Outcome categories a request surface maps to its own status codes."""

    SUCCESS = "success"
    BAD_REQUEST = "bad_request"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class RenameResult:
    status: RenameStatus
    message: str

    @property
    def ok(self) -> bool:
        return self.status is RenameStatus.SUCCESS


class RenameService:
    """
    Rename operation over the shared registry, store and broadcaster.

    Validation order is fixed: both names present, then the new name free
    of any other authenticated connection, then the old name held by one.
    """

    def __init__(self, registry: ConnectionRegistry, store: MessageStore, broadcaster: Broadcaster) -> None:
        self.registry = registry
        self.store = store
        self.broadcaster = broadcaster

    async def rename(self, old_name: str | None, new_name: str | None) -> RenameResult:
        """
        Rename an authenticated connection.

        A store failure after the registry has changed is reported as an
        internal error; the registry keeps the new name and no notice is
        broadcast.

        Args:
            old_name: Name currently held by the connection
            new_name: Requested replacement

        Returns:
            RenameResult describing the outcome
        """
        # Names are trimmed the same way the name handshake trims them
        old_name = (old_name or "").strip()
        new_name = (new_name or "").strip()
        if not old_name or not new_name:
            return RenameResult(RenameStatus.BAD_REQUEST, ErrorMessages.MISSING_NAMES)

        try:
            connection = await self.registry.rename_if_available(old_name, new_name)
        except DuplicateNameError:
            return RenameResult(RenameStatus.CONFLICT, ErrorMessages.USERNAME_TAKEN)
        except ConnectionNotFoundError:
            return RenameResult(RenameStatus.NOT_FOUND, ErrorMessages.CONNECTION_NOT_FOUND)

        if old_name == new_name:
            logger.info("Rename to the same name ignored", username=old_name)
            return RenameResult(RenameStatus.SUCCESS, ErrorMessages.USERNAME_UPDATED)

        try:
            updated = await self.store.rename_visitor(old_name, new_name, connection.remote_address)
        except DatabaseError as e:
            log_exception_once(logger, "error", "Error updating username in store", exc=e)
            return RenameResult(RenameStatus.INTERNAL_ERROR, ErrorMessages.DATABASE_UPDATE_FAILED)

        if updated != 1:
            # The registry is authoritative for presence; the visitors table is out of step
            logger.warning(
                "Visitor row not matched during rename",
                old_name=old_name,
                new_name=new_name,
                ip=connection.remote_address,
                rows_updated=updated,
            )

        await self.broadcaster.broadcast(messages.renamed(old_name, new_name))
        logger.info("Username changed", old_name=old_name, new_name=new_name)
        return RenameResult(RenameStatus.SUCCESS, ErrorMessages.USERNAME_UPDATED)
