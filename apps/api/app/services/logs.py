"""Activity log service layer."""

from app.adapters.backend.base import LOGS_TABLE, Backend, BackendError, Order
from app.errors import backend_unavailable, forbidden
from app.schemas.log import LogEntry

RECENT_LOG_LIMIT = 20


class LogService:
    def __init__(self, backend: Backend, *, enforce_owner_scope: bool = False) -> None:
        self._backend = backend
        self._enforce_owner_scope = enforce_owner_scope

    async def create_log(self, *, principal_id: str, user_id: str, description: str) -> LogEntry:
        # The body's user_id is trusted as-is unless owner scope is enforced.
        if self._enforce_owner_scope and user_id != principal_id:
            raise forbidden()

        try:
            row = await self._backend.db.insert(LOGS_TABLE, {"description": description, "user_id": user_id})
        except BackendError as exc:
            raise backend_unavailable(str(exc)) from exc
        return LogEntry.model_validate(row)

    async def list_recent_logs(self) -> list[LogEntry]:
        try:
            rows = await self._backend.db.select(
                LOGS_TABLE,
                columns=("id", "user_id", "description", "created_at"),
                order=Order("created_at", descending=True),
                limit=RECENT_LOG_LIMIT,
            )
        except BackendError as exc:
            raise backend_unavailable(str(exc)) from exc
        return [LogEntry.model_validate(row) for row in rows]
