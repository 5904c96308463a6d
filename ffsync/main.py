import asyncio
import logging

import uvicorn
from fastapi import FastAPI

from ffsync.config import Preferences, load_settings
from ffsync.health.server import create_app
from ffsync.logging_config import setup_logging
from ffsync.providers.forexfactory import ForexFactoryProvider
from ffsync.services.orchestrator import ScrapeOrchestrator
from ffsync.storage.supabase import StoreConfig, SupabaseClient
from ffsync.utils.http import HttpClient, HttpPolicy

log = logging.getLogger("main")


async def start_health_server(app: FastAPI, host: str, port: int) -> None:
    config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)
    await server.serve()


async def main() -> None:
    s = load_settings()
    setup_logging(s.log_level)

    http = HttpClient(
        HttpPolicy(
            user_agent=s.user_agent,
            connect_timeout_seconds=s.http_connect_timeout,
            total_timeout_seconds=s.http_total_timeout,
        )
    )
    provider = ForexFactoryProvider(http=http, url=s.calendar_url)

    store: SupabaseClient | None = None
    if s.supabase_url and s.supabase_key:
        store = SupabaseClient(
            StoreConfig(
                url=s.supabase_url,
                api_key=s.supabase_key,
                table=s.supabase_table,
                refresh_function=s.supabase_refresh_function,
            )
        )

    orchestrator = ScrapeOrchestrator(
        provider=provider,
        store=store,
        preferences=Preferences.from_settings(s),
        success_grace_seconds=s.success_grace_seconds,
    )
    orchestrator.subscribe(
        lambda snap: log.debug("State: %s, %d events", snap.status.description, len(snap.events))
    )

    app = create_app(orchestrator, store)

    orchestrator.start()
    log.info("Serving status on %s:%d", s.health_host, s.health_port)
    try:
        await start_health_server(app, s.health_host, s.health_port)
    finally:
        orchestrator.shutdown()
        await http.aclose()
        if store is not None:
            await store.aclose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
