import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ffsync.config import Preferences
from ffsync.errors import CalendarSyncError
from ffsync.models import PERIODS, Period
from ffsync.providers.base import CalendarProvider
from ffsync.storage.supabase import SupabaseClient
from ffsync.utils.state import RunSnapshot, RunState, StatusKind

log = logging.getLogger("services.orchestrator")

AUTO_UPDATE_JOB_ID = "auto_update"

Observer = Callable[[RunSnapshot], None]


class ScrapeOrchestrator:
    """
    Owns the run state and drives fetch -> parse -> (upload).

    Everything here runs on one event loop, so the `is_running` check in
    `run()` happens before the first await and needs no lock. A run asked
    for while another is in flight is dropped, never queued.
    """

    def __init__(
        self,
        *,
        provider: CalendarProvider,
        store: SupabaseClient | None = None,
        preferences: Preferences | None = None,
        success_grace_seconds: float = 5.0,
        scheduler: AsyncIOScheduler | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.provider = provider
        self.store = store
        self.prefs = preferences or Preferences()
        self.success_grace_seconds = success_grace_seconds
        self.sched = scheduler or AsyncIOScheduler()
        self.clock = clock

        if self.prefs.upload_enabled and store is None:
            raise ValueError("upload is enabled but no destination store was given")

        self._state = RunState(last_requested_period=self.prefs.period)
        self._observers: list[Observer] = []
        self._auto_job: Job | None = None
        self._revert_handle: asyncio.TimerHandle | None = None

    # ----- observation -----

    def snapshot(self) -> RunSnapshot:
        return self._state.snapshot()

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _publish(self) -> None:
        snap = self._state.snapshot()
        for observer in list(self._observers):
            try:
                observer(snap)
            except Exception as ex:
                log.exception("Observer failed: %s", ex)

    def _set_status(self, kind: StatusKind, message: str | None = None) -> None:
        self._state.status = self._state.status.to(kind, message)
        log.info("Status -> %s", self._state.status.description)
        self._publish()

    # ----- runs -----

    async def run(self, period: Period | None = None, *, upload: bool | None = None) -> bool:
        """
        Execute one pipeline run. Returns False if another run is in flight.

        `upload=False` scrapes without touching the destination store.
        """
        if self._state.is_running:
            log.info("Run already in progress; request ignored")
            return False

        period = period or self.prefs.period
        if upload is None:
            upload = self.prefs.upload_enabled

        self._state.is_running = True
        self._state.run_id += 1
        self._state.last_requested_period = period
        self._cancel_revert()

        try:
            self._set_status("scraping")
            if upload and self.store is None:
                raise CalendarSyncError("no destination store configured")
            events = await self.provider.fetch_calendar(period)

            self._state.events = tuple(events)
            self._publish()
            log.info("Scraped %d events (period=%s)", len(events), period)

            if upload:
                self._set_status("uploading")
                await self.store.upload_events(events, now=self.clock())

            self._state.last_update = self.clock()
            self._set_status("success")
            self._schedule_revert(self._state.run_id)
        except CalendarSyncError as ex:
            log.error("Run failed: %s", ex)
            self._set_status("error", str(ex))
        except Exception as ex:
            log.exception("Run failed unexpectedly: %s", ex)
            self._set_status("error", str(ex) or type(ex).__name__)
        finally:
            self._state.is_running = False
            self._publish()

        return True

    async def scrape_only(self, period: Period | None = None) -> bool:
        return await self.run(period, upload=False)

    def acknowledge(self) -> bool:
        """Clear a surfaced error back to idle."""
        if self._state.status.kind != "error" or self._state.is_running:
            return False
        self._set_status("idle")
        return True

    def _schedule_revert(self, run_id: int) -> None:
        loop = asyncio.get_running_loop()
        self._revert_handle = loop.call_later(self.success_grace_seconds, self._revert_success, run_id)

    def _cancel_revert(self) -> None:
        if self._revert_handle is not None:
            self._revert_handle.cancel()
            self._revert_handle = None

    def _revert_success(self, run_id: int) -> None:
        self._revert_handle = None
        # a newer run owns the status now
        if self._state.run_id != run_id or self._state.status.kind != "success":
            return
        self._set_status("idle")

    # ----- preferences -----

    def set_auto_update(self, enabled: bool) -> None:
        self.prefs.auto_update_enabled = enabled
        if enabled:
            self._schedule_auto_update()
        else:
            self._cancel_auto_update()

    def set_update_interval(self, seconds: int) -> None:
        if seconds <= 0:
            raise ValueError("update interval must be positive")
        self.prefs.update_interval_seconds = int(seconds)
        if self.prefs.auto_update_enabled:
            self._schedule_auto_update()

    def set_upload_enabled(self, enabled: bool) -> None:
        if enabled and self.store is None:
            raise ValueError("no destination store configured")
        self.prefs.upload_enabled = enabled

    def set_period(self, period: Period) -> None:
        if period not in PERIODS:
            raise ValueError(f"unknown period {period!r}")
        self.prefs.period = period

    # ----- timer -----

    @property
    def auto_update_job(self) -> Job | None:
        return self._auto_job

    def _schedule_auto_update(self) -> None:
        self._cancel_auto_update()
        self._auto_job = self.sched.add_job(
            self.run,
            "interval",
            seconds=self.prefs.update_interval_seconds,
            id=AUTO_UPDATE_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        log.info("Auto-update scheduled every %ds", self.prefs.update_interval_seconds)

    def _cancel_auto_update(self) -> None:
        if self._auto_job is None:
            return
        try:
            self._auto_job.remove()
        except JobLookupError:
            log.debug("Auto-update job was already gone")
        self._auto_job = None
        log.info("Auto-update stopped")

    def start(self, *, initial_run: bool = True) -> None:
        if self.prefs.auto_update_enabled:
            self._schedule_auto_update()

        # initial run on boot
        if initial_run:
            self.sched.add_job(self.run, "date", run_date=datetime.now() + timedelta(seconds=2), id="initial_run")

        self.sched.start()
        log.info("Orchestrator started")

    def shutdown(self) -> None:
        self._cancel_revert()
        if self.sched.running:
            self.sched.shutdown(wait=False)
        log.info("Orchestrator stopped")
