# app/api/health.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request, Response

from app.config.settings import get_settings
from app.services.polling_view import CounterView, MarketView
from app.utils.readiness import annotate_poller_jobs
from app.utils.time import iso_z

router = APIRouter(tags=["health"])

APP_STARTED_AT = time.time()


def _now_meta() -> Dict[str, Any]:
    now_ts = time.time()
    now_dt = datetime.fromtimestamp(now_ts, tz=timezone.utc)
    return {
        "now_unix": int(now_ts),
        "now_iso": now_dt.isoformat().replace("+00:00", "Z"),
        "uptime_s": int(now_ts - APP_STARTED_AT),
    }


def _check_view(request: Request) -> Dict[str, Any]:
    view = getattr(request.app.state, "view", None)
    if view is None:
        return {"ok": False, "error": "view not configured"}

    check: Dict[str, Any] = {
        "ok": view.error is None,
        "loading": view.loading,
        "error": view.error,
        "last_updated": iso_z(view.last_updated),
    }
    if isinstance(view, MarketView):
        check["kind"] = "market"
        check["coins"] = len(view.snapshot)
        check["page_size"] = view.page_size
    elif isinstance(view, CounterView):
        check["kind"] = "counter"
        check["total"] = view.total
    return check


def _check_poller(request: Request) -> Dict[str, Any]:
    handle = getattr(request.app.state, "poller", None)
    if handle is None:
        return {"ok": False, "running": False, "error": "poller not started", "per_job": {}, "meta": {}}
    return handle.info()


@router.get("/live")
async def live():
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request, response: Response):
    settings = getattr(request.app.state, "settings", None) or get_settings()
    checks = {
        "view": _check_view(request),
        "poller": _check_poller(request),
    }

    degraded_reasons = []

    poller = checks["poller"]
    if poller.get("running"):
        poller, stale = annotate_poller_jobs(poller)
        if stale:
            degraded_reasons.append("poller_stalled")
            poller["ok"] = False
            poller["stale_jobs"] = stale
    elif settings.MARKET_POLL_ENABLED:
        degraded_reasons.append("poller_unavailable")

    payload: Dict[str, Any] = {**_now_meta(), "checks": checks}
    if degraded_reasons:
        payload["status"] = "degraded"
        payload["degraded_reasons"] = degraded_reasons
        response.status_code = 503
    else:
        payload["status"] = "ok"
        payload["degraded_reasons"] = []
    return payload


@router.get("/health")
async def health(request: Request, response: Response):
    return await ready(request, response)
