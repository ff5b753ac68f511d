"""Verifier that asks the identity provider who owns a token."""

from __future__ import annotations

from app.adapters.auth.base import AuthVerificationError, TokenVerifier
from app.adapters.backend.base import BackendError, IdentityProvider
from app.schemas.auth import AuthPrincipal


class ProviderTokenVerifier(TokenVerifier):
    """Resolves every token with a live provider lookup."""

    def __init__(self, provider: IdentityProvider) -> None:
        self._provider = provider

    async def verify_token(self, token: str) -> AuthPrincipal:
        try:
            user = await self._provider.get_user(token)
        except BackendError as exc:
            raise AuthVerificationError("Identity provider lookup failed") from exc

        if user is None:
            raise AuthVerificationError("Invalid or expired token")

        return AuthPrincipal(
            user_id=user.id,
            email=user.email,
            name=user.name,
            claims=user.model_dump(mode="json"),
        )


__all__ = ["ProviderTokenVerifier"]
