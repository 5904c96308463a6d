from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from ffsync.models import EconomicEvent, Period
from ffsync.utils.timeutil import relative_time, today_tokens

StatusKind = Literal["idle", "scraping", "uploading", "success", "error"]

TRANSITIONS: dict[str, frozenset[str]] = {
    "idle": frozenset({"scraping"}),
    "scraping": frozenset({"uploading", "success", "error"}),
    "uploading": frozenset({"success", "error"}),
    "success": frozenset({"idle", "scraping"}),
    "error": frozenset({"idle", "scraping"}),
}

_DESCRIPTIONS = {
    "idle": "Waiting",
    "scraping": "Scraping...",
    "uploading": "Uploading...",
    "success": "Success",
}


@dataclass(frozen=True)
class Status:
    kind: StatusKind = "idle"
    message: str | None = None

    @property
    def description(self) -> str:
        if self.kind == "error":
            return f"Error: {self.message}"
        return _DESCRIPTIONS[self.kind]

    @property
    def busy(self) -> bool:
        return self.kind in ("scraping", "uploading")

    def to(self, kind: StatusKind, message: str | None = None) -> "Status":
        if kind not in TRANSITIONS[self.kind]:
            raise ValueError(f"illegal status transition {self.kind} -> {kind}")
        if (kind == "error") != (message is not None):
            raise ValueError("an error status needs a message, and only an error status")
        return Status(kind, message)


@dataclass
class RunState:
    status: Status = field(default_factory=Status)
    events: tuple[EconomicEvent, ...] = ()
    last_update: datetime | None = None
    last_requested_period: Period = "week"
    is_running: bool = False

    # bumped on every run start; stale success reverts compare against it
    run_id: int = 0

    def snapshot(self) -> "RunSnapshot":
        return RunSnapshot(
            status=self.status,
            events=self.events,
            last_update=self.last_update,
            last_requested_period=self.last_requested_period,
            is_running=self.is_running,
        )


@dataclass(frozen=True)
class RunSnapshot:
    status: Status
    events: tuple[EconomicEvent, ...]
    last_update: datetime | None
    last_requested_period: Period
    is_running: bool

    @property
    def high_impact_events(self) -> list[EconomicEvent]:
        return [e for e in self.events if e.impact == "high"]

    def today_events(self, now: datetime) -> list[EconomicEvent]:
        tokens = today_tokens(now)
        return [e for e in self.events if e.date in tokens]

    @property
    def currencies(self) -> list[str]:
        return sorted({e.currency for e in self.events})

    def last_update_relative(self, now: datetime) -> str:
        return relative_time(self.last_update, now)

    def to_dict(self, now: datetime) -> dict:
        return {
            "status": self.status.kind,
            "message": self.status.message,
            "description": self.status.description,
            "is_running": self.is_running,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "last_update_relative": self.last_update_relative(now),
            "last_requested_period": self.last_requested_period,
            "event_count": len(self.events),
            "high_impact_count": len(self.high_impact_events),
            "today_count": len(self.today_events(now)),
            "currencies": self.currencies,
        }
