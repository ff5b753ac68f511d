"""Unauthenticated system routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.config import Settings
from app.routes.dependencies import get_app_settings
from app.schemas.system import AnonKeyResponse, HealthResponse

router = APIRouter(tags=["System"])


@router.get("/anon-key", response_model=AnonKeyResponse)
async def read_anon_key(settings: Annotated[Settings, Depends(get_app_settings)]) -> AnonKeyResponse:
    """Hand the public anon key to browser clients; it is not a secret."""
    return AnonKeyResponse(anon_key=settings.supabase_anon_key, supabase_url=settings.supabase_url)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok")
