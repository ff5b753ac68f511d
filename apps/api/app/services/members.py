"""Member listing and daily research summary."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from app.adapters.backend.base import PROFILES_TABLE, RESEARCH_TABLE, Backend, BackendError, Order, eq, gte, lt
from app.errors import backend_unavailable
from app.schemas.member import Member
from app.schemas.research import MemberResearchSummary, ResearchSummaryItem


def local_now(timezone: str | None = None) -> datetime:
    """Current time in ``timezone``, or naive host wall-clock time when unset."""
    if timezone:
        return datetime.now(ZoneInfo(timezone))
    return datetime.now()


def _start_of(day: date, zone: tzinfo | None) -> datetime:
    midnight = datetime.combine(day, time())
    if zone is None:
        # The host zone resolves the UTC offset in effect on that day.
        return midnight.astimezone()
    return midnight.replace(tzinfo=zone)


def summary_window(now: datetime) -> tuple[datetime, datetime]:
    """Return ``[start of yesterday, start of tomorrow)`` around ``now``'s day.

    Both boundaries are wall-clock midnights, so each carries the offset of its
    own day when a DST change falls inside the window.
    """
    today = now.date()
    return _start_of(today - timedelta(days=1), now.tzinfo), _start_of(today + timedelta(days=1), now.tzinfo)


class MemberService:
    def __init__(self, backend: Backend, *, clock: Callable[[], datetime] = local_now) -> None:
        self._backend = backend
        self._clock = clock

    async def _profiles(self) -> list[dict]:
        return await self._backend.db.select(PROFILES_TABLE, columns=("id", "name"), order=Order("id"))

    async def list_members(self) -> list[Member]:
        try:
            rows = await self._profiles()
        except BackendError as exc:
            raise backend_unavailable(str(exc)) from exc
        return [Member.model_validate(row) for row in rows]

    async def research_summary(self) -> list[MemberResearchSummary]:
        start, end = summary_window(self._clock())

        try:
            profiles = await self._profiles()
            summaries = []
            for profile in profiles:
                recs = await self._backend.db.select(
                    RESEARCH_TABLE,
                    columns=("id", "description", "file_url", "created_at"),
                    filters=(eq("user_id", profile["id"]), gte("created_at", start), lt("created_at", end)),
                )
                summaries.append(
                    MemberResearchSummary(
                        id=str(profile["id"]),
                        name=profile.get("name"),
                        recs=[ResearchSummaryItem.model_validate(rec) for rec in recs],
                    )
                )
        except BackendError as exc:
            raise backend_unavailable(str(exc)) from exc

        return summaries
