from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from ffsync.utils.timeutil import normalize_event_date

Impact = Literal["high", "medium", "low", "unknown"]
Period = Literal["today", "week"]

PERIODS: tuple[str, ...] = ("today", "week")
IMPACTS: tuple[str, ...] = ("high", "medium", "low", "unknown")


@dataclass(frozen=True)
class EconomicEvent:
    # raw page token, e.g. "MonDec 9" (no year)
    date: str
    time: str  # e.g. "8:30am", possibly inherited from a previous row
    currency: str
    impact: Impact
    name: str

    # blank until published
    actual: str = ""
    forecast: str = ""
    previous: str = ""

    detail_url: str = ""

    @property
    def id(self) -> str:
        # in-process key only; `date` has no year
        return f"{self.date}-{self.time}-{self.currency}-{self.name}"

    @property
    def event_date(self) -> str:
        return normalize_event_date(self.date, datetime.now())

    def natural_key(self, now: datetime | None = None) -> tuple[str, str, str, str]:
        return (normalize_event_date(self.date, now or datetime.now()), self.time, self.name, self.currency)

    def to_record(self, now: datetime | None = None) -> dict[str, Any]:
        """Flat row for the destination table; blank values become null."""
        return {
            "date": self.date,
            "time": self.time,
            "currency": self.currency,
            "impact": self.impact.capitalize(),
            "name": self.name,
            "actual": self.actual or None,
            "forecast": self.forecast or None,
            "previous": self.previous or None,
            "detail_url": self.detail_url,
            "event_date": normalize_event_date(self.date, now or datetime.now()),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "event_date": self.event_date,
            "time": self.time,
            "currency": self.currency,
            "impact": self.impact,
            "name": self.name,
            "actual": self.actual,
            "forecast": self.forecast,
            "previous": self.previous,
            "detail_url": self.detail_url,
        }
