"""In-memory collaborators used for local development and tests."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from app.adapters.backend.base import (
    LOGS_TABLE,
    PROFILES_TABLE,
    RESEARCH_TABLE,
    Backend,
    BackendError,
    BlobStore,
    DuplicateAccountError,
    Filter,
    IdentityProvider,
    Order,
    RecordStore,
)
from app.schemas.auth import ProviderSession, ProviderUser


@dataclass(slots=True)
class StoredObject:
    bucket: str
    key: str
    content: bytes
    content_type: str


def _matches(row: dict[str, Any], item: Filter) -> bool:
    value = row.get(item.column)
    if item.op == "eq":
        return value == item.value
    if value is None:
        return False
    if item.op == "gte":
        return value >= item.value
    return value < item.value


@dataclass
class InMemoryRecordStore(RecordStore):
    """Simple, deterministic record store keyed by table name."""

    tables: dict[str, list[dict[str, Any]]] = field(
        default_factory=lambda: {PROFILES_TABLE: [], RESEARCH_TABLE: [], LOGS_TABLE: []}
    )
    read_count: int = 0
    write_count: int = 0
    insert_failpoints: dict[str, str] = field(default_factory=dict)
    select_failpoints: dict[str, str] = field(default_factory=dict)
    _last_created_at: datetime | None = None

    def _next_created_at(self) -> datetime:
        now = datetime.now(UTC)
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now

    def seed(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a row directly, bypassing counters and failpoints."""
        stored = dict(row)
        stored.setdefault("id", str(uuid4()))
        if table != PROFILES_TABLE and "created_at" not in stored:
            stored["created_at"] = self._next_created_at()
        self.tables.setdefault(table, []).append(stored)
        return dict(stored)

    def rows(self, table: str) -> list[dict[str, Any]]:
        return [dict(row) for row in self.tables.get(table, [])]

    async def select(
        self,
        table: str,
        *,
        columns: Sequence[str],
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        self.read_count += 1
        if table in self.select_failpoints:
            raise BackendError(self.select_failpoints[table])

        rows = [row for row in self.tables.get(table, []) if all(_matches(row, item) for item in filters)]
        if order is not None:
            rows.sort(key=lambda row: row.get(order.column), reverse=order.descending)
        if limit is not None:
            rows = rows[:limit]
        return [{column: row.get(column) for column in columns} for row in rows]

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        if table in self.insert_failpoints:
            raise BackendError(self.insert_failpoints[table])

        stored = dict(row)
        stored.setdefault("id", str(uuid4()))
        if table != PROFILES_TABLE:
            stored["created_at"] = self._next_created_at()
        if table == PROFILES_TABLE and any(existing["id"] == stored["id"] for existing in self.tables[table]):
            raise BackendError("duplicate key value violates unique constraint \"profiles_pkey\"")

        self.tables.setdefault(table, []).append(stored)
        self.write_count += 1
        return dict(stored)


@dataclass
class InMemoryIdentityProvider(IdentityProvider):
    """Accounts and opaque session tokens held in process memory."""

    users: dict[str, dict[str, str]] = field(default_factory=dict)
    sessions: dict[str, str] = field(default_factory=dict)
    unavailable_message: str | None = None

    def _check_available(self) -> None:
        if self.unavailable_message is not None:
            raise BackendError(self.unavailable_message)

    def _to_provider_user(self, record: dict[str, str]) -> ProviderUser:
        return ProviderUser(id=record["id"], email=record["email"], user_metadata={"name": record["name"]})

    async def create_user(self, *, email: str, password: str, name: str) -> ProviderUser:
        self._check_available()
        if any(record["email"] == email for record in self.users.values()):
            raise DuplicateAccountError("A user with this email address has already been registered")

        record = {"id": str(uuid4()), "email": email, "password": password, "name": name}
        self.users[record["id"]] = record
        return self._to_provider_user(record)

    async def sign_in_with_password(self, *, email: str, password: str) -> ProviderSession | None:
        self._check_available()
        for record in self.users.values():
            if record["email"] == email and record["password"] == password:
                token = f"session-{uuid4().hex}"
                self.sessions[token] = record["id"]
                return ProviderSession(access_token=token, user=self._to_provider_user(record))
        return None

    async def get_user(self, token: str) -> ProviderUser | None:
        self._check_available()
        user_id = self.sessions.get(token)
        if user_id is None or user_id not in self.users:
            return None
        return self._to_provider_user(self.users[user_id])


@dataclass
class InMemoryBlobStore(BlobStore):
    base_url: str = "https://storage.example.test"
    objects: dict[tuple[str, str], StoredObject] = field(default_factory=dict)
    write_count: int = 0
    put_failure_message: str | None = None

    async def put_object(self, bucket: str, key: str, content: bytes, content_type: str) -> None:
        if self.put_failure_message is not None:
            raise BackendError(self.put_failure_message)
        if (bucket, key) in self.objects:
            raise BackendError("The resource already exists")

        self.objects[(bucket, key)] = StoredObject(bucket=bucket, key=key, content=content, content_type=content_type)
        self.write_count += 1

    async def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{key}"


def build_memory_backend() -> Backend:
    return Backend(
        auth=InMemoryIdentityProvider(),
        db=InMemoryRecordStore(),
        storage=InMemoryBlobStore(),
    )


__all__ = [
    "InMemoryBlobStore",
    "InMemoryIdentityProvider",
    "InMemoryRecordStore",
    "StoredObject",
    "build_memory_backend",
]
