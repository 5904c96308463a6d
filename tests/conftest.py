import pytest


def calendar_row(
    date: str = "",
    time: str = "",
    currency: str = "",
    name: str = "",
    impact: str | None = None,
    actual: str = "",
    forecast: str = "",
    previous: str = "",
) -> str:
    impact_html = f'<span class="icon {impact}"></span>' if impact else ""
    date_html = f'<span class="date">{date[:3]}<span>{date[3:]}</span></span>' if date else ""
    return (
        '<tr class="calendar__row">'
        f'<td class="calendar__cell calendar__date">{date_html}</td>'
        f'<td class="calendar__cell calendar__time">{time}</td>'
        f'<td class="calendar__cell calendar__currency">{currency}</td>'
        f'<td class="calendar__cell calendar__impact">{impact_html}</td>'
        f'<td class="calendar__cell calendar__event"><span>{name}</span></td>'
        f'<td class="calendar__cell calendar__actual">{actual}</td>'
        f'<td class="calendar__cell calendar__forecast">{forecast}</td>'
        f'<td class="calendar__cell calendar__previous">{previous}</td>'
        "</tr>"
    )


def calendar_page(*rows: str) -> str:
    return (
        "<html><body>"
        '<table class="calendar__table">'
        '<tr class="calendar__row calendar__row--header"><th>Date</th></tr>'
        + "".join(rows)
        + "</table></body></html>"
    )


@pytest.fixture
def row():
    return calendar_row


@pytest.fixture
def page():
    return calendar_page
