"""Supabase adapters speaking the GoTrue, PostgREST and Storage HTTP APIs."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from app.adapters.backend.base import (
    Backend,
    BackendError,
    BlobStore,
    DuplicateAccountError,
    Filter,
    IdentityProvider,
    Order,
    RecordStore,
)
from app.core.config import Settings
from app.schemas.auth import ProviderSession, ProviderUser

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise BackendError(
            f"Unreadable response body from {response.request.url.path}", status_code=response.status_code
        ) from exc


def _parse_model(model: type[_ModelT], response: httpx.Response) -> _ModelT:
    try:
        return model.model_validate(_json_body(response))
    except ValidationError as exc:
        raise BackendError(f"Unexpected {model.__name__} payload from identity provider") from exc


def _filter_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class SupabaseHttp:
    """Shared request plumbing for one Supabase project."""

    def __init__(self, *, base_url: str, service_key: str, anon_key: str, client: httpx.AsyncClient) -> None:
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.anon_key = anon_key
        self._client = client

    async def request(
        self,
        method: str,
        path: str,
        *,
        api_key: str,
        bearer: str | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        merged = {"apikey": api_key, "Authorization": f"Bearer {bearer or api_key}"}
        if headers:
            merged.update(headers)
        try:
            return await self._client.request(method, f"{self.base_url}{path}", headers=merged, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("supabase.request_failed method=%s path=%s error=%s", method, path, type(exc).__name__)
            raise BackendError(f"Supabase request failed: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


class SupabaseIdentityProvider(IdentityProvider):
    """GoTrue-backed identity provider."""

    def __init__(self, http: SupabaseHttp) -> None:
        self._http = http

    async def create_user(self, *, email: str, password: str, name: str) -> ProviderUser:
        response = await self._http.request(
            "POST",
            "/auth/v1/admin/users",
            api_key=self._http.service_key,
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"name": name},
            },
        )
        if response.status_code == 422:
            message = _error_message(response)
            if "already" in message.lower() or "exists" in message.lower():
                raise DuplicateAccountError(message, status_code=422)
        if response.is_error:
            raise BackendError(_error_message(response), status_code=response.status_code)
        return _parse_model(ProviderUser, response)

    async def sign_in_with_password(self, *, email: str, password: str) -> ProviderSession | None:
        response = await self._http.request(
            "POST",
            "/auth/v1/token",
            api_key=self._http.anon_key,
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        # GoTrue answers a credential mismatch with 400 invalid_grant.
        if response.status_code in (400, 401):
            return None
        if response.is_error:
            raise BackendError(_error_message(response), status_code=response.status_code)
        return _parse_model(ProviderSession, response)

    async def get_user(self, token: str) -> ProviderUser | None:
        response = await self._http.request(
            "GET",
            "/auth/v1/user",
            api_key=self._http.anon_key,
            bearer=token,
        )
        if response.status_code in (401, 403):
            return None
        if response.is_error:
            raise BackendError(_error_message(response), status_code=response.status_code)
        return _parse_model(ProviderUser, response)


class SupabaseRecordStore(RecordStore):
    """PostgREST-backed record store authenticated with the service key."""

    def __init__(self, http: SupabaseHttp) -> None:
        self._http = http

    async def select(
        self,
        table: str,
        *,
        columns: Sequence[str],
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params: list[tuple[str, str]] = [("select", ",".join(columns))]
        params.extend((item.column, f"{item.op}.{_filter_value(item.value)}") for item in filters)
        if order is not None:
            params.append(("order", f"{order.column}.{'desc' if order.descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))

        response = await self._http.request(
            "GET",
            f"/rest/v1/{table}",
            api_key=self._http.service_key,
            params=params,
        )
        if response.is_error:
            raise BackendError(_error_message(response), status_code=response.status_code)
        rows = _json_body(response)
        if not isinstance(rows, list):
            raise BackendError(f"Unexpected response shape from table {table}")
        return rows

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        response = await self._http.request(
            "POST",
            f"/rest/v1/{table}",
            api_key=self._http.service_key,
            headers={"Prefer": "return=representation"},
            json=row,
        )
        if response.is_error:
            raise BackendError(_error_message(response), status_code=response.status_code)
        rows = _json_body(response)
        if not isinstance(rows, list) or not rows:
            raise BackendError(f"Insert into {table} returned no row")
        return rows[0]


class SupabaseBlobStore(BlobStore):
    """Supabase Storage-backed blob store."""

    def __init__(self, http: SupabaseHttp) -> None:
        self._http = http

    async def put_object(self, bucket: str, key: str, content: bytes, content_type: str) -> None:
        response = await self._http.request(
            "POST",
            f"/storage/v1/object/{bucket}/{quote(key)}",
            api_key=self._http.service_key,
            headers={"Content-Type": content_type, "x-upsert": "false"},
            content=content,
        )
        if response.is_error:
            raise BackendError(_error_message(response), status_code=response.status_code)

    async def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self._http.base_url}/storage/v1/object/public/{bucket}/{quote(key)}"


def build_supabase_backend(settings: Settings, *, client: httpx.AsyncClient | None = None) -> Backend:
    """Wire the three Supabase collaborators over one shared HTTP client."""
    http = SupabaseHttp(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_key,
        anon_key=settings.supabase_anon_key,
        client=client or httpx.AsyncClient(timeout=settings.http_timeout_seconds),
    )
    return Backend(
        auth=SupabaseIdentityProvider(http),
        db=SupabaseRecordStore(http),
        storage=SupabaseBlobStore(http),
        on_close=http.aclose,
    )


__all__ = [
    "SupabaseBlobStore",
    "SupabaseHttp",
    "SupabaseIdentityProvider",
    "SupabaseRecordStore",
    "build_supabase_backend",
]
