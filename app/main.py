# app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.counter import router as counter_router
from app.api.health import router as health_router
from app.api.market import router as market_router

from app.config.settings import Settings, get_settings
from app.jobs.poller import start_poller, stop_poller
from app.services.counter import CounterStore
from app.services.polling_view import create_view

logger = logging.getLogger("coin_dashboard")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.view = create_view(settings)
        app.state.poller = None

        if settings.MARKET_POLL_ENABLED:
            app.state.poller = start_poller(
                app.state.view,
                settings.MARKET_POLL_INTERVAL_SECONDS,
                job_id=f"poll:{settings.DASHBOARD_VARIANT}",
            )
        else:
            logger.info("polling disabled (MARKET_POLL_ENABLED=false)")

        try:
            yield
        finally:
            if app.state.poller is not None:
                await stop_poller(app.state.poller)
            else:
                await app.state.view.close()
            app.state.poller = None

    app = FastAPI(title="Coin Dashboard API", lifespan=lifespan)

    # Counter state lives for the process, independent of the poller
    app.state.counter = CounterStore()
    app.state.settings = settings

    # Routers
    app.include_router(health_router)
    app.include_router(counter_router)
    app.include_router(market_router)

    @app.get("/")
    def root() -> dict[str, str]:
        return {"message": "Coin Dashboard", "variant": settings.DASHBOARD_VARIANT}

    return app


app = create_app()
