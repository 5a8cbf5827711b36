"""Cross-cutting operations invoked by the request surfaces."""

from .rename_service import RenameResult, RenameService, RenameStatus

__all__ = ["RenameResult", "RenameService", "RenameStatus"]
