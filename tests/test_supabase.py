import asyncio
import json
from datetime import datetime

import httpx
import pytest

from ffsync.errors import UploadError
from ffsync.models import EconomicEvent
from ffsync.storage.supabase import StoreConfig, SupabaseClient

NOW = datetime(2026, 12, 1, 9, 0)
CFG = StoreConfig(url="https://demo.supabase.co/", api_key="anon-key")


def make_event(**overrides) -> EconomicEvent:
    fields = dict(
        date="MonDec 7",
        time="8:30am",
        currency="USD",
        impact="high",
        name="Retail Sales m/m",
        actual="",
        forecast="0.3%",
        previous="0",
        detail_url="https://www.forexfactory.com/calendar/retail-sales-mm",
    )
    fields.update(overrides)
    return EconomicEvent(**fields)


def run_with(handler, coro_factory):
    async def go():
        client = SupabaseClient(CFG, transport=httpx.MockTransport(handler))
        try:
            return await coro_factory(client)
        finally:
            await client.aclose()

    return asyncio.run(go())


def test_empty_upload_makes_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201)

    run_with(handler, lambda c: c.upload_events([]))
    assert calls == []


def test_upload_is_one_batched_upsert():
    calls: list[httpx.Request] = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201)

    events = [make_event(), make_event(currency="EUR", name="CPI y/y", impact="low", actual="2.1%", forecast="", previous="")]
    run_with(handler, lambda c: c.upload_events(events, now=NOW))

    assert len(calls) == 1
    req = calls[0]
    assert req.method == "POST"
    assert req.url.path == "/rest/v1/economic_events"
    assert req.url.params["on_conflict"] == "event_date,time,name,currency"
    assert req.headers["authorization"] == "Bearer anon-key"
    assert req.headers["apikey"] == "anon-key"
    assert req.headers["prefer"] == "resolution=merge-duplicates,return=minimal"

    body = json.loads(req.content)
    assert len(body) == 2
    assert body[0] == {
        "date": "MonDec 7",
        "time": "8:30am",
        "currency": "USD",
        "impact": "High",
        "name": "Retail Sales m/m",
        "actual": None,
        "forecast": "0.3%",
        "previous": "0",
        "detail_url": "https://www.forexfactory.com/calendar/retail-sales-mm",
        "event_date": "2026-12-07",
    }
    assert body[1]["actual"] == "2.1%"
    assert body[1]["forecast"] is None
    assert body[1]["previous"] is None


def test_rejected_upload_carries_status_and_body():
    def handler(request):
        return httpx.Response(409, text='{"message":"duplicate key"}')

    with pytest.raises(UploadError) as info:
        run_with(handler, lambda c: c.upload_events([make_event()], now=NOW))

    assert info.value.status_code == 409
    assert "duplicate key" in info.value.body


def test_trigger_refresh_posts_to_function():
    calls: list[httpx.Request] = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"ok": True})

    run_with(handler, lambda c: c.trigger_refresh())

    assert calls[0].url.path == "/functions/v1/fetch-economic-calendar"
    assert calls[0].headers["authorization"] == "Bearer anon-key"


def test_trigger_refresh_failure():
    with pytest.raises(UploadError):
        run_with(lambda request: httpx.Response(500, text="oops"), lambda c: c.trigger_refresh())
