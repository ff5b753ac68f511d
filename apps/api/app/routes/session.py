"""Login, registration and current-user routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.routes.dependencies import get_authenticated_principal, get_session_service
from app.schemas.auth import AuthPrincipal, LoginRequest, LoginResponse, RegisterRequest
from app.schemas.error import ErrorResponse
from app.schemas.member import Profile
from app.services.session import SessionService

router = APIRouter(tags=["Session"])


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def login(
    payload: LoginRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> LoginResponse:
    return await service.login(email=payload.email, password=payload.password)


@router.post(
    "/register",
    response_model=Profile,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def register(
    payload: RegisterRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> Profile:
    return await service.register(email=payload.email, password=payload.password, name=payload.name)


@router.get(
    "/me",
    response_model=Profile,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def read_current_user(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> Profile:
    return await service.get_profile(user_id=principal.user_id)
