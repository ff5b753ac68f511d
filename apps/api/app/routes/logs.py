"""Activity log routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.routes.dependencies import get_authenticated_principal, get_log_service
from app.schemas.auth import AuthPrincipal
from app.schemas.error import ErrorResponse
from app.schemas.log import CreateLogRequest, LogEntry
from app.services.logs import LogService

router = APIRouter(tags=["Logs"])


@router.post(
    "/log",
    response_model=LogEntry,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_log(
    payload: CreateLogRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[LogService, Depends(get_log_service)],
) -> LogEntry:
    return await service.create_log(
        principal_id=principal.user_id,
        user_id=payload.user_id,
        description=payload.description,
    )


@router.get(
    "/logs",
    response_model=list[LogEntry],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_logs(
    _principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[LogService, Depends(get_log_service)],
) -> list[LogEntry]:
    return await service.list_recent_logs()
