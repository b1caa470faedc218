from __future__ import annotations

from app.utils.readiness import annotate_poller_jobs


def _check(**job):
    return {"meta": {"started_at": 1000.0}, "per_job": {"poll:market": {"schedule_s": 60, **job}}}


def test_recent_success_is_not_stalled():
    payload, stale = annotate_poller_jobs(_check(last_success_ts=1100.0), now_ts=1200.0)
    job = payload["per_job"]["poll:market"]
    assert stale == []
    assert job["stalled"] is False
    assert job["age_s"] == 100.0
    assert job["allowed_age_s"] == 150.0
    assert job["ref_ts_key"] == "last_success_ts"


def test_old_success_is_stalled():
    _, stale = annotate_poller_jobs(_check(last_success_ts=1000.0, consecutive_failures=3), now_ts=1200.0)
    assert len(stale) == 1
    assert stale[0]["job_id"] == "poll:market"
    assert stale[0]["stalled_by_s"] == 50.0
    assert stale[0]["consecutive_failures"] == 3


def test_never_succeeded_falls_back_to_start():
    payload, stale = annotate_poller_jobs(_check(), now_ts=1100.0)
    job = payload["per_job"]["poll:market"]
    assert job["never_succeeded"] is True
    assert job["ref_ts_key"] == "meta.started_at"
    assert stale == []
