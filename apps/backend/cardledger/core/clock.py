from __future__ import annotations

from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from .config import settings


try:
    LOCAL_ZONE = ZoneInfo(getattr(settings, "TIMEZONE", "America/Sao_Paulo"))
except Exception:
    LOCAL_ZONE = ZoneInfo("America/Sao_Paulo")


def now_local_naive() -> datetime:
    """Return naive datetime normalized to configured local timezone."""
    return datetime.now(LOCAL_ZONE).replace(tzinfo=None)


class Clock(Protocol):
    def today(self) -> date: ...

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock evaluated in the configured local timezone."""

    def today(self) -> date:
        return now_local_naive().date()

    def now(self) -> datetime:
        return now_local_naive()


class FixedClock:
    """Clock frozen at a given calendar day; used by tests and backfills."""

    def __init__(self, today: date, at: datetime | None = None) -> None:
        self._today = today
        self._now = at or datetime(today.year, today.month, today.day, 12, 0, 0)

    def today(self) -> date:
        return self._today

    def now(self) -> datetime:
        return self._now


def get_clock() -> Clock:
    return SystemClock()
