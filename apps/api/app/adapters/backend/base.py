"""External collaborator interfaces: identity provider, record store, blob store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from app.schemas.auth import ProviderSession, ProviderUser

PROFILES_TABLE = "profiles"
RESEARCH_TABLE = "research"
LOGS_TABLE = "logs"


class BackendError(Exception):
    """Raised when an external store or provider call fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DuplicateAccountError(BackendError):
    """Raised when the identity provider already has an account for the email."""


@dataclass(frozen=True, slots=True)
class Filter:
    column: str
    op: Literal["eq", "gte", "lt"]
    value: Any


@dataclass(frozen=True, slots=True)
class Order:
    column: str
    descending: bool = False


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


class IdentityProvider(ABC):
    """Hosted auth capabilities consumed by the login and verifier paths."""

    @abstractmethod
    async def create_user(self, *, email: str, password: str, name: str) -> ProviderUser:
        """Create a confirmed account and return the provider user."""

    @abstractmethod
    async def sign_in_with_password(self, *, email: str, password: str) -> ProviderSession | None:
        """Return a provider session, or ``None`` when the credentials do not match."""

    @abstractmethod
    async def get_user(self, token: str) -> ProviderUser | None:
        """Resolve a provider access token, or ``None`` when it is not valid."""


class RecordStore(ABC):
    """Generic filtered select / insert-with-return over named collections."""

    @abstractmethod
    async def select(
        self,
        table: str,
        *,
        columns: Sequence[str],
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return matching rows projected to ``columns``."""

    @abstractmethod
    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it with server-assigned fields."""


class BlobStore(ABC):
    """Object storage scoped to named buckets."""

    @abstractmethod
    async def put_object(self, bucket: str, key: str, content: bytes, content_type: str) -> None:
        """Store ``content`` under ``key``; never overwrites an existing object."""

    @abstractmethod
    async def get_public_url(self, bucket: str, key: str) -> str:
        """Return a publicly resolvable URL for ``key``."""


@dataclass(slots=True)
class Backend:
    """The three collaborators wired into one application instance."""

    auth: IdentityProvider
    db: RecordStore
    storage: BlobStore
    on_close: Callable[[], Awaitable[None]] | None = None

    async def aclose(self) -> None:
        if self.on_close is not None:
            await self.on_close()


__all__ = [
    "Backend",
    "BackendError",
    "BlobStore",
    "DuplicateAccountError",
    "Filter",
    "IdentityProvider",
    "LOGS_TABLE",
    "Order",
    "PROFILES_TABLE",
    "RESEARCH_TABLE",
    "RecordStore",
    "eq",
    "gte",
    "lt",
]
