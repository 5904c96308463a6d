import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from ffsync.errors import InvalidURL, NetworkError, NoData

log = logging.getLogger("http")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def browser_headers(user_agent: str, referer: str) -> dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Sec-Fetch-User": "?1",
        "Cache-Control": "max-age=0",
        "Referer": referer,
        "DNT": "1",
    }


@dataclass(frozen=True)
class HttpPolicy:
    user_agent: str = DEFAULT_USER_AGENT
    referer: str = "https://www.forexfactory.com/"
    connect_timeout_seconds: float = 30.0
    total_timeout_seconds: float = 60.0


class HttpClient:
    """
    Page fetcher that looks like a desktop browser:
    - full browser header set (the calendar blocks bare clients)
    - bounded connect and total transfer time
    - every failure mapped onto the sync error taxonomy
    """

    def __init__(self, policy: HttpPolicy | None = None, *, transport: httpx.AsyncBaseTransport | None = None):
        self.policy = policy or HttpPolicy()
        self._client = httpx.AsyncClient(
            headers=browser_headers(self.policy.user_agent, self.policy.referer),
            timeout=httpx.Timeout(self.policy.total_timeout_seconds, connect=self.policy.connect_timeout_seconds),
            follow_redirects=True,
            transport=transport,
        )

    async def get_text(self, url: str) -> str:
        check_url(url)
        try:
            resp = await asyncio.wait_for(self._client.get(url), timeout=self.policy.total_timeout_seconds)
        except asyncio.TimeoutError as ex:
            raise NetworkError(f"timed out fetching {url}") from ex
        except httpx.HTTPError as ex:
            raise NetworkError(f"request to {host_of(url)} failed: {ex}") from ex

        log.info("GET %s -> HTTP %d", url, resp.status_code)
        if not resp.is_success:
            raise NetworkError(f"HTTP {resp.status_code} from {host_of(url)}")

        try:
            return resp.content.decode(resp.encoding or "utf-8")
        except (UnicodeDecodeError, LookupError) as ex:
            raise NoData(f"response from {host_of(url)} is not text") from ex

    async def aclose(self) -> None:
        await self._client.aclose()


def host_of(url: str) -> str:
    return urlparse(url).netloc.lower()


def check_url(url: str) -> None:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURL(f"invalid URL: {url!r}")
