"""
Name change API endpoint for the chatroom server.

PUT /change-name moves a display name from one connected user to another
value. A malformed or incomplete body is a 400 with a readable reason,
never a 422.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from ..dependencies import get_rename_service
from ..error_types import ErrorMessages
from ..exceptions import LoggedHTTPException
from ..services.rename_service import RenameService, RenameStatus
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.error_logging import create_context_from_request

logger = get_logger(__name__)

names_router = APIRouter(tags=["names"])

STATUS_CODES: dict[RenameStatus, int] = {
    RenameStatus.SUCCESS: 200,
    RenameStatus.BAD_REQUEST: 400,
    RenameStatus.CONFLICT: 409,
    RenameStatus.NOT_FOUND: 404,
    RenameStatus.INTERNAL_ERROR: 500,
}


class ChangeNameRequest(BaseModel):
    """Body of a name change request."""

    model_config = ConfigDict(extra="ignore")

    oldName: str | None = None  # noqa: N815  # wire field names
    newName: str | None = None  # noqa: N815


async def _parse_body(request: Request) -> ChangeNameRequest:
    context = create_context_from_request(request)
    try:
        payload: Any = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        context.metadata["parse_error"] = str(e)
        raise LoggedHTTPException(status_code=400, detail=ErrorMessages.MISSING_NAMES, context=context) from e
    if not isinstance(payload, dict):
        raise LoggedHTTPException(status_code=400, detail=ErrorMessages.MISSING_NAMES, context=context)
    try:
        return ChangeNameRequest.model_validate(payload)
    except PydanticValidationError as e:
        context.metadata["validation_errors"] = e.error_count()
        raise LoggedHTTPException(status_code=400, detail=ErrorMessages.MISSING_NAMES, context=context) from e


@names_router.put("/change-name")
async def change_name(
    request: Request,
    rename_service: RenameService = Depends(get_rename_service),
) -> dict[str, str]:
    """
    Rename a connected user.

    Returns 200 on success; 400 when a name is missing, 409 when the new name
    is held by someone else, 404 when no one holds the old name, and 500
    when the store update fails.
    """
    body = await _parse_body(request)
    result = await rename_service.rename(body.oldName, body.newName)

    if result.ok:
        return {"message": result.message}

    context = create_context_from_request(request)
    context.metadata["operation"] = "change_name"
    context.metadata["old_name"] = body.oldName
    context.metadata["new_name"] = body.newName
    raise LoggedHTTPException(status_code=STATUS_CODES[result.status], detail=result.message, context=context)
