# app/jobs/poller.py
from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.services.polling_view import PollingView

logger = logging.getLogger("coin_dashboard.poller")


def _iso_z_from_epoch(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    dt = datetime.fromtimestamp(float(ts), tz=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def _now_epoch() -> float:
    return time.time()


# ----------------------------
# poller state + handle
# ----------------------------
@dataclass
class PollerState:
    job_id: str
    interval_s: float
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)
    task: Optional[asyncio.Task] = None
    stopped: bool = False
    meta: Dict[str, Any] = field(default_factory=dict)
    stats: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PollerHandle:
    """
    Stored in app.state.poller so /ready can report poller status.
    """
    view: PollingView
    _state: PollerState

    @property
    def running(self) -> bool:
        return bool(self._state.task and not self._state.task.done() and not self._state.stop_event.is_set())

    @property
    def interval_s(self) -> float:
        return self._state.interval_s

    def info(self) -> Dict[str, Any]:
        s = self._state.stats
        started_at = self._state.meta.get("started_at")
        return {
            "ok": self.running,
            "running": self.running,
            "uptime_s": int(_now_epoch() - started_at) if started_at else None,
            "meta": {
                **self._state.meta,
                "started_at_iso": _iso_z_from_epoch(started_at),
            },
            "per_job": {
                self._state.job_id: {
                    "schedule_s": self._state.interval_s,
                    "last_run_ts": s.get("last_run_ts"),
                    "last_run_iso": _iso_z_from_epoch(s.get("last_run_ts")),
                    "last_success_ts": s.get("last_success_ts"),
                    "last_success_iso": _iso_z_from_epoch(s.get("last_success_ts")),
                    "last_success_ms": s.get("last_success_ms"),
                    "consecutive_failures": s.get("consecutive_failures", 0),
                    "last_error_ts": s.get("last_error_ts"),
                    "last_error_iso": _iso_z_from_epoch(s.get("last_error_ts")),
                    "last_error": s.get("last_error"),
                }
            },
        }


# ----------------------------
# poll loop
# ----------------------------
async def _poll_loop(view: PollingView, state: PollerState) -> None:
    interval = state.interval_s
    stop_event = state.stop_event
    stats = state.stats

    next_tick = time.monotonic()  # run immediately once

    while not stop_event.is_set():
        now = time.monotonic()
        if now < next_tick:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=(next_tick - now))
            except asyncio.TimeoutError:
                pass
            continue

        stats["last_run_ts"] = _now_epoch()
        t0 = time.perf_counter()

        try:
            applied = await view.refresh()
            dt_ms = int((time.perf_counter() - t0) * 1000)
            if applied:
                stats["last_success_ts"] = _now_epoch()
                stats["last_success_ms"] = dt_ms
                stats["consecutive_failures"] = 0
                logger.debug("poll done | %s | %dms", state.job_id, dt_ms)
            elif view.error is not None:
                stats["last_error_ts"] = _now_epoch()
                stats["last_error"] = view.error[:300]
                stats["consecutive_failures"] = int(stats.get("consecutive_failures", 0)) + 1
            else:
                # superseded by a newer refresh; neither success nor failure
                logger.debug("poll result dropped | %s | %dms", state.job_id, dt_ms)

        except asyncio.CancelledError:
            raise
        except Exception as e:
            dt_ms = int((time.perf_counter() - t0) * 1000)
            stats["last_error_ts"] = _now_epoch()
            stats["last_error"] = repr(e)[:300]
            stats["consecutive_failures"] = int(stats.get("consecutive_failures", 0)) + 1

            logger.exception("poll error | %s | %dms", state.job_id, dt_ms)

        next_tick += interval
        if next_tick < time.monotonic() - interval:
            next_tick = time.monotonic() + interval


# ----------------------------
# public API
# ----------------------------
def start_poller(view: PollingView, interval_s: float, job_id: str = "poll") -> PollerHandle:
    """Start refreshing `view` every `interval_s` seconds. Must run inside an event loop."""
    state = PollerState(job_id=job_id, interval_s=float(interval_s))
    state.meta = {"pid": os.getpid(), "started_at": _now_epoch(), "job_id": job_id}
    state.stats = {
        "last_run_ts": None,
        "last_success_ts": None,
        "last_success_ms": None,
        "last_error_ts": None,
        "last_error": None,
        "consecutive_failures": 0,
    }
    state.task = asyncio.create_task(_poll_loop(view, state), name=job_id)

    logger.info("poller started | %s | interval_s=%s", job_id, interval_s)
    return PollerHandle(view=view, _state=state)


async def stop_poller(handle: Optional[PollerHandle], timeout_s: float = 6.0) -> None:
    """Stop the timer and close the view. Safe to call more than once."""
    if handle is None:
        return

    state = handle._state
    if state.stopped:
        return
    state.stopped = True
    state.stop_event.set()

    task = state.task
    try:
        if task is not None:
            await asyncio.wait_for(asyncio.gather(task, return_exceptions=True), timeout=timeout_s)
    except asyncio.TimeoutError:
        if not task.done():
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)
    finally:
        await handle.view.close()

    logger.info("poller stopped | %s", state.job_id)
