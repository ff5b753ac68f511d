"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.adapters.backend import Backend, build_supabase_backend
from app.core.config import Settings, get_settings
from app.errors import ApiError
from app.repositories.memory import build_memory_backend
from app.routes import logs_router, members_router, research_router, session_router, system_router
from app.routes.dependencies import authenticate_request, build_token_verifier, requires_principal
from app.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

_VALIDATION_MESSAGES: dict[tuple[str, str], str] = {
    ("POST", "/api/login"): "Email and password required",
    ("POST", "/api/register"): "Email, password and name are required",
    ("POST", "/api/research"): "Description is required",
    ("POST", "/api/log"): "Description and user_id are required",
}


def build_backend(settings: Settings) -> Backend:
    if settings.backend == "memory":
        return build_memory_backend()
    return build_supabase_backend(settings)


def create_app(settings: Settings | None = None, backend: Backend | None = None) -> FastAPI:
    settings = settings or get_settings()
    backend = backend or build_backend(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await backend.aclose()

    app = FastAPI(title="Research Log API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.backend = backend
    app.state.token_verifier = build_token_verifier(settings, backend)
    logger.info(
        "app.configured backend=%s auth_strategy=%s enforce_owner_scope=%s",
        settings.backend,
        settings.auth_strategy,
        settings.enforce_owner_scope,
    )

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        route = request.scope.get("route")
        # Unparseable bodies are rejected before dependencies run; credentials still come first.
        if requires_principal(route):
            try:
                await authenticate_request(request, request.app.state.token_verifier)
            except ApiError as auth_error:
                return await handle_api_error(request, auth_error)
        route_path = getattr(route, "path", request.url.path)
        message = _VALIDATION_MESSAGES.get((request.method.upper(), route_path), "Invalid request payload")
        payload = ErrorResponse(
            code="INVALID_INPUT",
            message=message,
            details={"fields": [".".join(str(part) for part in error["loc"]) for error in exc.errors()]},
        )
        return JSONResponse(status_code=400, content=payload.model_dump())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_prefix = "/api"
    app.include_router(system_router, prefix=api_prefix)
    app.include_router(session_router, prefix=api_prefix)
    app.include_router(members_router, prefix=api_prefix)
    app.include_router(research_router, prefix=api_prefix)
    app.include_router(logs_router, prefix=api_prefix)

    return app
