"""Member listing and research summary routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.routes.dependencies import get_authenticated_principal, get_member_service
from app.schemas.auth import AuthPrincipal
from app.schemas.error import ErrorResponse
from app.schemas.member import Member
from app.schemas.research import MemberResearchSummary
from app.services.members import MemberService

router = APIRouter(tags=["Members"])


@router.get(
    "/members",
    response_model=list[Member],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_members(
    _principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[MemberService, Depends(get_member_service)],
) -> list[Member]:
    return await service.list_members()


@router.get(
    "/research-summary",
    response_model=list[MemberResearchSummary],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def research_summary(
    _principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[MemberService, Depends(get_member_service)],
) -> list[MemberResearchSummary]:
    return await service.research_summary()
