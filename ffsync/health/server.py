import logging
from datetime import datetime
from typing import Literal

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from ffsync.errors import CalendarSyncError
from ffsync.providers.base import apply_filters
from ffsync.services.orchestrator import ScrapeOrchestrator
from ffsync.storage.supabase import SupabaseClient

logger = logging.getLogger(__name__)


class PreferencesUpdate(BaseModel):
    auto_update_enabled: bool | None = None
    update_interval_seconds: int | None = Field(default=None, gt=0)
    upload_enabled: bool | None = None
    period: Literal["today", "week"] | None = None


def create_app(orchestrator: ScrapeOrchestrator, store: SupabaseClient | None = None) -> FastAPI:
    app = FastAPI(title="ffsync")

    def _prefs() -> dict:
        p = orchestrator.prefs
        return {
            "auto_update_enabled": p.auto_update_enabled,
            "update_interval_seconds": p.update_interval_seconds,
            "upload_enabled": p.upload_enabled,
            "period": p.period,
        }

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/status")
    async def status():
        return orchestrator.snapshot().to_dict(datetime.now())

    @app.get("/events")
    async def events(
        currency: str | None = None,
        impact: str | None = None,
        search: str | None = None,
        today: bool = False,
    ):
        snap = orchestrator.snapshot()
        pool = snap.today_events(datetime.now()) if today else list(snap.events)
        return [e.to_dict() for e in apply_filters(pool, currency=currency, impact=impact, search=search)]

    @app.post("/run")
    async def run(period: Literal["today", "week"] | None = None, upload: bool | None = None):
        ran = await orchestrator.run(period, upload=upload)
        snap = orchestrator.snapshot()
        return {"ran": ran, "status": snap.status.kind, "message": snap.status.message}

    @app.post("/status/ack")
    async def ack():
        return {"cleared": orchestrator.acknowledge()}

    @app.get("/preferences")
    async def get_preferences():
        return _prefs()

    @app.put("/preferences")
    async def put_preferences(update: PreferencesUpdate):
        try:
            if update.upload_enabled is not None:
                orchestrator.set_upload_enabled(update.upload_enabled)
            if update.period is not None:
                orchestrator.set_period(update.period)
            if update.update_interval_seconds is not None:
                orchestrator.set_update_interval(update.update_interval_seconds)
            if update.auto_update_enabled is not None:
                orchestrator.set_auto_update(update.auto_update_enabled)
        except ValueError as ex:
            raise HTTPException(status_code=400, detail=str(ex)) from ex
        return _prefs()

    @app.post("/remote-refresh")
    async def remote_refresh():
        if store is None:
            raise HTTPException(status_code=404, detail="no destination store configured")
        try:
            await store.trigger_refresh()
        except CalendarSyncError as ex:
            logger.error("Remote refresh failed: %s", ex)
            raise HTTPException(status_code=502, detail=str(ex)) from ex
        return {"ok": True}

    return app
