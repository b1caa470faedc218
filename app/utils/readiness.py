# app/utils/readiness.py
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Tuple

# a poll job is stale if age > STALL_MULTIPLIER * schedule_s
STALL_MULTIPLIER_DEFAULT = 2.5


def _coerce_float(value: Any, default: float = 0.0) -> float:
    try:
        if value is None:
            return default
        return float(value)
    except (TypeError, ValueError):
        return default


def annotate_poller_jobs(
    poller_check: Dict[str, Any],
    now_ts: float | None = None,
    stall_multiplier: float = STALL_MULTIPLIER_DEFAULT,
) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Adds age/stall fields to every job in `poller_check["per_job"]` (in place).

    Age is measured from last_success_ts, falling back to last_run_ts and then
    to meta.started_at for a job that never succeeded. Returns the payload and
    the list of stalled jobs, most overdue first.
    """
    now = float(now_ts) if now_ts is not None else time.time()
    stall_mult = _coerce_float(stall_multiplier, default=STALL_MULTIPLIER_DEFAULT)

    per_job = poller_check.get("per_job") or {}
    meta = poller_check.get("meta") or {}
    started_at = meta.get("started_at")

    stale: List[Dict[str, Any]] = []

    for job_id, j in per_job.items():
        schedule_s = _coerce_float(j.get("schedule_s"))
        allowed_age_s = schedule_s * stall_mult if schedule_s > 0 else None

        ref_ts: Optional[float] = None
        ref_key: Optional[str] = None
        for key, value in (
            ("last_success_ts", j.get("last_success_ts")),
            ("last_run_ts", j.get("last_run_ts")),
            ("meta.started_at", started_at),
        ):
            if value is not None:
                ref_ts, ref_key = float(value), key
                break

        age_s = max(0.0, now - ref_ts) if ref_ts is not None else None

        stalled = allowed_age_s is not None and age_s is not None and age_s > allowed_age_s
        stalled_by_s = (age_s - allowed_age_s) if stalled else 0.0

        j["stall_multiplier"] = stall_mult
        j["age_s"] = age_s
        j["allowed_age_s"] = allowed_age_s
        j["ref_ts_key"] = ref_key
        j["stalled"] = stalled
        j["stalled_by_s"] = stalled_by_s
        j["never_succeeded"] = j.get("last_success_ts") is None

        if stalled:
            stale.append(
                {
                    "job_id": job_id,
                    "schedule_s": schedule_s,
                    "age_s": age_s,
                    "allowed_age_s": allowed_age_s,
                    "stalled_by_s": stalled_by_s,
                    "last_error": j.get("last_error"),
                    "consecutive_failures": j.get("consecutive_failures"),
                }
            )

    stale.sort(key=lambda x: (-(x.get("stalled_by_s") or 0.0), str(x.get("job_id") or "")))
    return poller_check, stale
