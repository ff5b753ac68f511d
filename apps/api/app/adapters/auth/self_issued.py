"""Verifier for HS256 tokens this service signs at login."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from pydantic import ValidationError

from app.adapters.auth.base import AuthVerificationError, TokenVerifier
from app.schemas.auth import AuthPrincipal, SelfIssuedClaims

ALGORITHM = "HS256"


class SelfIssuedTokenVerifier(TokenVerifier):
    """Signs and locally verifies short-lived ``{id, email, name}`` tokens.

    The ``id`` claim written by :meth:`issue_token` is the claim read back as
    the principal's ``user_id``.
    """

    def __init__(self, secret: str, *, ttl: timedelta = timedelta(hours=12)) -> None:
        self._secret = secret
        self._ttl = ttl

    def issue_token(self, *, user_id: str, email: str | None, name: str | None) -> str:
        expire = datetime.now(UTC) + self._ttl
        claims = {"id": user_id, "email": email, "name": name, "exp": expire}
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    async def verify_token(self, token: str) -> AuthPrincipal:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except JWTError as exc:
            raise AuthVerificationError("Invalid or expired token") from exc

        try:
            claims = SelfIssuedClaims.model_validate(payload)
        except ValidationError as exc:
            raise AuthVerificationError("Bearer token missing user identity") from exc

        return AuthPrincipal(user_id=claims.id, email=claims.email, name=claims.name, claims=payload)


__all__ = ["ALGORITHM", "SelfIssuedTokenVerifier"]
