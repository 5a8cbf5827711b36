"""
Dependency injection providers for the chatroom server.

Routes reach shared components through the ChatContainer on app.state,
never through module globals.
"""

from fastapi import Depends, Request

from .container import ChatContainer
from .services.rename_service import RenameService


def get_container(request: Request) -> ChatContainer:
    """
    Get the application container from request state.

    Raises:
        RuntimeError: If the lifespan has not installed a container
    """
    if not hasattr(request.app.state, "container"):
        raise RuntimeError("ChatContainer not found in app.state - ensure container is initialized in lifespan context")
    return request.app.state.container


def get_rename_service(container: ChatContainer = Depends(get_container)) -> RenameService:
    return container.rename_service
