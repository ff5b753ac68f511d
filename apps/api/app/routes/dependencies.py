"""Dependency wiring for routes."""

from __future__ import annotations

import logging
from datetime import timedelta
from functools import partial
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.adapters.auth import (
    AuthVerificationError,
    ProviderTokenVerifier,
    SelfIssuedTokenVerifier,
    TokenVerifier,
)
from app.adapters.backend import Backend
from app.core.config import Settings
from app.core.logging_safety import safe_log_identifier
from app.errors import unauthenticated
from app.schemas.auth import AuthPrincipal
from app.services.logs import LogService
from app.services.members import MemberService, local_now
from app.services.research import ResearchService
from app.services.session import SessionService

BEARER_PREFIX = "Bearer "

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def parse_bearer_token(header_value: str | None) -> str | None:
    """Return the token from a case-sensitive ``Bearer <token>`` header value."""
    if not header_value or not header_value.startswith(BEARER_PREFIX):
        return None
    token = header_value[len(BEARER_PREFIX):].strip()
    return token or None


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def build_token_verifier(settings: Settings, backend: Backend) -> TokenVerifier:
    """Resolve the single verifier strategy for this deployment."""
    if settings.auth_strategy == "delegated":
        return ProviderTokenVerifier(backend.auth)
    if not settings.jwt_secret:
        raise ValueError("jwt_secret is required for self-issued tokens")
    return SelfIssuedTokenVerifier(settings.jwt_secret, ttl=timedelta(hours=settings.token_ttl_hours))


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_backend(request: Request) -> Backend:
    return request.app.state.backend


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


async def authenticate_request(request: Request, verifier: TokenVerifier) -> AuthPrincipal:
    """Validate bearer token and attach normalized principal to request context."""
    correlation_id = _request_correlation_id(request)
    safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")
    token = parse_bearer_token(request.headers.get("Authorization"))
    if token is None:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=invalid_or_missing_bearer",
            safe_correlation_id,
            request.method,
            request.url.path,
        )
        raise unauthenticated("Authorization header missing or invalid")

    try:
        principal = await verifier.verify_token(token)
    except AuthVerificationError as exc:
        logger.warning(
            "auth.rejected correlation_id=%s method=%s path=%s reason=token_verification_failed detail=%s",
            safe_correlation_id,
            request.method,
            request.url.path,
            exc,
        )
        raise unauthenticated("Invalid or expired token") from exc

    logger.info(
        "auth.accepted correlation_id=%s method=%s path=%s principal_id=%s",
        safe_correlation_id,
        request.method,
        request.url.path,
        safe_log_identifier(principal.user_id, prefix="pid"),
    )
    request.state.auth_principal = principal
    return principal


async def get_authenticated_principal(
    request: Request,
    _credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> AuthPrincipal:
    return await authenticate_request(request, verifier)


def requires_principal(route: object) -> bool:
    """Whether a matched route resolves the authenticated principal."""
    dependant = getattr(route, "dependant", None)
    pending = [dependant] if dependant is not None else []
    while pending:
        current = pending.pop()
        if current.call is get_authenticated_principal:
            return True
        pending.extend(current.dependencies)
    return False


def get_session_service(
    backend: Annotated[Backend, Depends(get_backend)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> SessionService:
    return SessionService(backend, verifier, legacy_plaintext_passwords=settings.legacy_plaintext_passwords)


def get_member_service(
    backend: Annotated[Backend, Depends(get_backend)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MemberService:
    return MemberService(backend, clock=partial(local_now, settings.summary_timezone))


def get_research_service(
    backend: Annotated[Backend, Depends(get_backend)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ResearchService:
    return ResearchService(
        backend,
        bucket=settings.storage_bucket,
        max_upload_bytes=settings.max_upload_bytes,
        enforce_owner_scope=settings.enforce_owner_scope,
    )


def get_log_service(
    backend: Annotated[Backend, Depends(get_backend)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> LogService:
    return LogService(backend, enforce_owner_scope=settings.enforce_owner_scope)
