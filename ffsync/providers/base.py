from abc import ABC, abstractmethod
from typing import Iterable

from ffsync.models import EconomicEvent, Period


class CalendarProvider(ABC):
    name: str

    @abstractmethod
    async def fetch_calendar(self, period: Period) -> list[EconomicEvent]:
        """Return the source's events for `period`, in page order."""


def apply_filters(
    events: Iterable[EconomicEvent],
    *,
    currency: str | None = None,
    impact: str | None = None,
    search: str | None = None,
) -> list[EconomicEvent]:
    out: list[EconomicEvent] = []
    needle = (search or "").strip().lower()

    for e in events:
        if currency and e.currency.upper() != currency.upper():
            continue
        if impact and e.impact != impact.lower():
            continue
        if needle and needle not in e.name.lower() and needle not in e.currency.lower():
            continue
        out.append(e)
    return out
