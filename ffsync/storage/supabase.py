import logging
from dataclasses import dataclass
from datetime import datetime

import httpx

from ffsync.errors import NetworkError, UploadError
from ffsync.models import EconomicEvent
from ffsync.utils.http import check_url

log = logging.getLogger("storage.supabase")

# natural key of a calendar row; repeated uploads merge on it
CONFLICT_COLUMNS = ("event_date", "time", "name", "currency")


@dataclass(frozen=True)
class StoreConfig:
    url: str
    api_key: str
    table: str = "economic_events"
    refresh_function: str = "fetch-economic-calendar"
    timeout_seconds: float = 30.0


class SupabaseClient:
    """Upserts calendar rows through the PostgREST endpoint of a Supabase project."""

    def __init__(self, cfg: StoreConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self._client = httpx.AsyncClient(timeout=cfg.timeout_seconds, transport=transport)

    @property
    def upsert_url(self) -> str:
        return f"{self.cfg.url.rstrip('/')}/rest/v1/{self.cfg.table}"

    @property
    def refresh_url(self) -> str:
        return f"{self.cfg.url.rstrip('/')}/functions/v1/{self.cfg.refresh_function}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.cfg.api_key}",
            "apikey": self.cfg.api_key,
            "Content-Type": "application/json",
        }

    async def upload_events(self, events: list[EconomicEvent], *, now: datetime | None = None) -> None:
        if not events:
            log.info("No events to upload")
            return

        check_url(self.upsert_url)
        now = now or datetime.now()
        payload = [e.to_record(now) for e in events]

        headers = self._headers()
        headers["Prefer"] = "resolution=merge-duplicates,return=minimal"
        resp = await self._post(
            self.upsert_url,
            json=payload,
            params={"on_conflict": ",".join(CONFLICT_COLUMNS)},
            headers=headers,
        )

        log.info("Upload response: HTTP %d", resp.status_code)
        if not resp.is_success:
            log.error("Upload rejected: %s", resp.text)
            raise UploadError(resp.status_code, resp.text)

        log.info("Uploaded %d events", len(events))

    async def trigger_refresh(self) -> None:
        """Fire the project's server-side calendar refresh function."""
        check_url(self.refresh_url)
        resp = await self._post(
            self.refresh_url,
            headers={"Authorization": f"Bearer {self.cfg.api_key}", "Content-Type": "application/json"},
        )
        log.info("Refresh function response: HTTP %d", resp.status_code)
        if not resp.is_success:
            raise UploadError(resp.status_code, resp.text)

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.post(url, **kwargs)
        except httpx.HTTPError as ex:
            raise NetworkError(f"request to {url} failed: {ex}") from ex

    async def aclose(self) -> None:
        await self._client.aclose()
