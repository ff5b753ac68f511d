"""Research record and upload routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from app.routes.dependencies import get_authenticated_principal, get_research_service
from app.schemas.auth import AuthPrincipal
from app.schemas.error import ErrorResponse
from app.schemas.research import CreateResearchRequest, ResearchRecord, UploadResponse
from app.services.research import ResearchService, UploadedFile

router = APIRouter(tags=["Research"])


@router.post(
    "/research",
    response_model=ResearchRecord,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_research(
    payload: CreateResearchRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[ResearchService, Depends(get_research_service)],
) -> ResearchRecord:
    return await service.create_research(
        owner_id=principal.user_id,
        description=payload.description,
        file_url=payload.file_url,
    )


@router.get(
    "/research",
    response_model=list[ResearchRecord],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def list_research(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[ResearchService, Depends(get_research_service)],
    user_id: Annotated[str | None, Query()] = None,
) -> list[ResearchRecord]:
    return await service.list_research(principal_id=principal.user_id, user_id=user_id)


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def upload_research_file(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[ResearchService, Depends(get_research_service)],
    file: Annotated[UploadFile | None, File()] = None,
    description: Annotated[str | None, Form()] = None,
    user_id: Annotated[str | None, Form()] = None,
) -> UploadResponse:
    upload = None
    if file is not None:
        upload = UploadedFile(
            filename=file.filename or "",
            content_type=file.content_type or "",
            # One byte past the cap is enough to reject an oversized file.
            content=await file.read(service.max_upload_bytes + 1),
        )
    record = await service.upload(
        principal_id=principal.user_id,
        description=description,
        upload=upload,
        claimed_user_id=user_id,
    )
    return UploadResponse(message="File uploaded successfully", data=record)
