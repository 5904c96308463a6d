import os
from dataclasses import dataclass

from dotenv import load_dotenv

from ffsync.models import PERIODS, Period
from ffsync.utils.http import DEFAULT_USER_AGENT


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    return int(v)


def _get_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    return float(v)


@dataclass(frozen=True)
class Settings:
    calendar_url: str
    user_agent: str
    http_connect_timeout: float
    http_total_timeout: float

    supabase_url: str
    supabase_key: str
    supabase_table: str
    supabase_refresh_function: str

    auto_update_enabled: bool
    update_interval_seconds: int
    upload_enabled: bool
    period: Period

    success_grace_seconds: float

    health_host: str
    health_port: int

    log_level: str


@dataclass
class Preferences:
    """Caller-adjustable knobs; the orchestrator applies changes as they are set."""

    auto_update_enabled: bool = True
    update_interval_seconds: int = 3600
    upload_enabled: bool = True
    period: Period = "week"

    @staticmethod
    def from_settings(s: Settings) -> "Preferences":
        return Preferences(
            auto_update_enabled=s.auto_update_enabled,
            update_interval_seconds=s.update_interval_seconds,
            upload_enabled=s.upload_enabled,
            period=s.period,
        )


def load_settings() -> Settings:
    load_dotenv()

    period = os.getenv("SCRAPE_PERIOD", "week").strip().lower()
    if period not in PERIODS:
        raise RuntimeError(f"SCRAPE_PERIOD must be one of {', '.join(PERIODS)}")

    interval = _get_int("UPDATE_INTERVAL_SECONDS", 3600)
    if interval <= 0:
        raise RuntimeError("UPDATE_INTERVAL_SECONDS must be positive")

    upload_enabled = _get_bool("UPLOAD_ENABLED", True)
    supabase_url = os.getenv("SUPABASE_URL", "").strip()
    supabase_key = os.getenv("SUPABASE_KEY", "").strip()
    if upload_enabled and (not supabase_url or not supabase_key):
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY are required when UPLOAD_ENABLED is on")

    return Settings(
        calendar_url=os.getenv("FF_CALENDAR_URL", "https://www.forexfactory.com/calendar"),
        user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
        http_connect_timeout=_get_float("HTTP_CONNECT_TIMEOUT", 30.0),
        http_total_timeout=_get_float("HTTP_TOTAL_TIMEOUT", 60.0),
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        supabase_table=os.getenv("SUPABASE_TABLE", "economic_events"),
        supabase_refresh_function=os.getenv("SUPABASE_REFRESH_FUNCTION", "fetch-economic-calendar"),
        auto_update_enabled=_get_bool("AUTO_UPDATE_ENABLED", True),
        update_interval_seconds=interval,
        upload_enabled=upload_enabled,
        period=period,
        success_grace_seconds=_get_float("SUCCESS_GRACE_SECONDS", 5.0),
        health_host=os.getenv("HEALTH_HOST", "0.0.0.0"),
        health_port=_get_int("HEALTH_PORT", 8080),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
