"""Authentication schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.fields import TrimmedStr


class AuthPrincipal(BaseModel):
    """Normalized authenticated principal used by business services."""

    user_id: str = Field(min_length=1)
    email: str | None = None
    name: str | None = None
    claims: dict[str, Any] = Field(default_factory=dict)


class SelfIssuedClaims(BaseModel):
    """Claim set embedded in tokens this service signs at login."""

    id: str = Field(min_length=1)
    email: str | None = None
    name: str | None = None
    exp: int | None = None

    model_config = ConfigDict(extra="allow")


class ProviderUser(BaseModel):
    """User object returned by the identity provider."""

    id: str = Field(min_length=1)
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")

    @property
    def name(self) -> str | None:
        value = self.user_metadata.get("name")
        return str(value) if value else None


class ProviderSession(BaseModel):
    access_token: str
    user: ProviderUser


class LoginRequest(BaseModel):
    email: TrimmedStr
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    user: dict[str, Any] | None = None


class RegisterRequest(BaseModel):
    email: TrimmedStr
    password: str = Field(min_length=1)
    name: TrimmedStr
