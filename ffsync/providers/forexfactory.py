import logging
from datetime import datetime

from bs4 import BeautifulSoup
from bs4.element import Tag

from ffsync.errors import ParsingError
from ffsync.models import EconomicEvent, Impact, Period
from ffsync.providers.base import CalendarProvider
from ffsync.utils.http import HttpClient
from ffsync.utils.timeutil import now_local, today_tokens

log = logging.getLogger(__name__)

BASE_URL = "https://www.forexfactory.com/calendar"

IMPACT_CLASSES: dict[str, Impact] = {
    "icon--ff-impact-red": "high",
    "icon--ff-impact-ora": "medium",
    "icon--ff-impact-yel": "low",
}

_SLUG_STRIP = str.maketrans("", "", "/%()")


class ForexFactoryProvider(CalendarProvider):
    """
    Scrapes the ForexFactory weekly calendar page.

    NOTE: only the `table.calendar__table` layout is understood. If the site
    changes its markup, parsing fails with ParsingError instead of guessing.
    """

    name = "forexfactory"

    def __init__(self, *, http: HttpClient, url: str = BASE_URL) -> None:
        self.http = http
        self.url = url

    async def fetch_calendar(self, period: Period) -> list[EconomicEvent]:
        html = await self.http.get_text(self.url)
        return parse_calendar(html, period)


def parse_calendar(html: str, period: Period = "week", *, now: datetime | None = None) -> list[EconomicEvent]:
    soup = BeautifulSoup(html, "lxml")

    table = soup.select_one("table.calendar__table")
    if table is None:
        raise ParsingError("Calendar table not found")

    events: list[EconomicEvent] = []
    current_date: str | None = None
    current_time = ""

    for tr in table.select("tr.calendar__row"):
        # date is only stamped on the first row of each day
        date_cell = _cell(tr, "date")
        if date_cell is not None and _text(date_cell):
            span = date_cell.find("span")
            current_date = _text(span) if span is not None else _text(date_cell)
            current_time = ""

        if not current_date:
            continue

        # same-time events share one visible time stamp
        time_str = _cell_text(tr, "time")
        if time_str:
            current_time = time_str
        if not current_time:
            continue

        currency = _cell_text(tr, "currency")
        name = _cell_text(tr, "event")
        if not name or not currency:
            continue

        events.append(
            EconomicEvent(
                date=current_date,
                time=current_time,
                currency=currency,
                impact=parse_impact(_cell(tr, "impact")),
                name=name,
                actual=_cell_text(tr, "actual"),
                forecast=_cell_text(tr, "forecast"),
                previous=_cell_text(tr, "previous"),
                detail_url=detail_url(name),
            )
        )

    if period == "today":
        events = filter_today(events, now or now_local())

    log.info("ForexFactory: parsed %d events (period=%s)", len(events), period)
    return events


def filter_today(events: list[EconomicEvent], now: datetime) -> list[EconomicEvent]:
    # exact match on the raw page token, not the normalized date
    tokens = today_tokens(now)
    return [e for e in events if e.date in tokens]


def parse_impact(cell: Tag | None) -> Impact:
    if cell is None:
        return "unknown"
    span = cell.find("span")
    if span is None:
        return "unknown"
    classes = set(span.get("class") or [])
    for cls, level in IMPACT_CLASSES.items():
        if cls in classes:
            return level
    return "unknown"


def detail_url(name: str) -> str:
    slug = name.lower().replace(" ", "-").translate(_SLUG_STRIP)
    return f"{BASE_URL}/{slug}"


def _cell(tr: Tag, kind: str) -> Tag | None:
    return tr.select_one(f"td.calendar__cell.calendar__{kind}")


def _cell_text(tr: Tag, kind: str) -> str:
    el = _cell(tr, kind)
    return _text(el) if el is not None else ""


def _text(el: Tag) -> str:
    # collapse whitespace but keep adjacent text nodes glued ("Mon" + "Dec 9")
    return " ".join(el.get_text().split())
