import logging
from datetime import datetime

log = logging.getLogger("timeutil")

MONTHS = {
    "Jan": 1, "Feb": 2, "Mar": 3, "Apr": 4, "May": 5, "Jun": 6,
    "Jul": 7, "Aug": 8, "Sep": 9, "Oct": 10, "Nov": 11, "Dec": 12,
}


def now_local() -> datetime:
    return datetime.now()


def infer_year(month: int, day: int, now: datetime) -> int:
    """
    The page shows month/day only. Months already behind us belong to next
    year, except the last days of December still listed in early January.
    """
    if now.month == 1 and month == 12 and day >= 25:
        return now.year - 1
    if month >= now.month:
        return now.year
    return now.year + 1


def normalize_event_date(raw: str, now: datetime) -> str:
    """
    "Mon Jan 6" / "MonJan 6" / "MonJan6" -> "YYYY-01-06".

    Unparseable input falls back to today's date (never raises). This masks
    bad tokens; callers that need to know should check `parse_month_day`.
    """
    parsed = parse_month_day(raw)
    if parsed is None:
        log.warning("Could not parse calendar date %r, using today", raw)
        return now.date().isoformat()

    month, day = parsed
    year = infer_year(month, day, now)
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_month_day(raw: str) -> tuple[int, int] | None:
    rest = (raw or "")[3:].strip()
    for abbr, month in MONTHS.items():
        if rest.startswith(abbr):
            day_str = rest[len(abbr):].strip()
            if not (day_str.isascii() and day_str.isdigit()):
                return None
            day = int(day_str)
            return (month, day) if day > 0 else None
    return None


WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_ABBRS = {n: abbr for abbr, n in MONTHS.items()}


def today_tokens(now: datetime) -> tuple[str, str]:
    # page renders e.g. "MonDec 9" in English whatever the local locale is
    head = f"{WEEKDAYS[now.weekday()]}{MONTH_ABBRS[now.month]}"
    return f"{head} {now.day}", f"{head}{now.day}"


def relative_time(dt: datetime | None, now: datetime) -> str:
    if dt is None:
        return "never"
    seconds = int((now - dt).total_seconds())
    if seconds < 60:
        return "just now"
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            n = seconds // size
            return f"{n} {unit}{'s' if n != 1 else ''} ago"
    return "just now"
