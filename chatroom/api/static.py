"""
Browser client and health endpoints.
"""

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse

from ..container import ChatContainer
from ..dependencies import get_container
from ..error_types import ErrorMessages
from ..exceptions import LoggedHTTPException
from ..utils.error_logging import create_context_from_request

static_router = APIRouter(tags=["static"])

INDEX_FILE = "index.html"


@static_router.get("/", include_in_schema=False)
async def index(request: Request, container: ChatContainer = Depends(get_container)) -> FileResponse:
    """Serve the browser chat client."""
    index_path = Path(container.config.server.static_dir) / INDEX_FILE
    if not index_path.is_file():
        context = create_context_from_request(request)
        context.metadata["index_path"] = str(index_path)
        raise LoggedHTTPException(status_code=404, detail=ErrorMessages.INDEX_NOT_FOUND, context=context)
    return FileResponse(index_path, media_type="text/html")


@static_router.get("/health")
async def health(container: ChatContainer = Depends(get_container)) -> dict[str, Any]:
    return {
        "status": "ok",
        "connections": container.registry.size,
        "authenticated": container.registry.authenticated_count(),
    }
