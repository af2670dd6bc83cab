import time
from datetime import datetime, timedelta, timezone

from conftest import HELLO_WORLD
from job import Job
from sweeper import Sweeper

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
RETENTION = timedelta(hours=1)


def add_job(store, job_id, created_at, completed_at=None, failed_at=None):
    store.create(Job(job_id=job_id, source_url="https://ex/a", created_at=created_at))
    if completed_at or failed_at:
        store.update(job_id, lambda job: job.start(10))
    if completed_at:
        store.update(job_id, lambda job: job.complete(HELLO_WORLD, completed_at))
    if failed_at:
        store.update(job_id, lambda job: job.fail("boom", failed_at))


def test_completed_job_past_retention_is_swept(store):
    add_job(store, "J2", NOW - timedelta(hours=3), completed_at=NOW - timedelta(hours=2))
    add_job(store, "J3", NOW - timedelta(hours=3), completed_at=NOW - timedelta(minutes=10))
    kept = store.get("J3")

    removed = Sweeper(store, retention=RETENTION, clock=lambda: NOW).sweep()

    assert removed == ["J2"]
    assert store.get("J2") is None
    assert store.get("J3") == kept


def test_failed_job_aged_from_failure(store):
    add_job(store, "old", NOW - timedelta(hours=5), failed_at=NOW - timedelta(hours=2))
    add_job(store, "recent", NOW - timedelta(hours=5), failed_at=NOW - timedelta(minutes=5))

    Sweeper(store, retention=RETENTION).sweep(now=NOW)

    assert "old" not in store
    assert "recent" in store


def test_stuck_job_aged_from_creation(store):
    add_job(store, "stuck", NOW - timedelta(hours=2))
    add_job(store, "fresh", NOW - timedelta(minutes=1))

    Sweeper(store, retention=RETENTION).sweep(now=NOW)

    assert "stuck" not in store
    assert "fresh" in store


def test_job_exactly_at_retention_is_kept(store):
    add_job(store, "edge", NOW - timedelta(hours=2), completed_at=NOW - RETENTION)
    assert Sweeper(store, retention=RETENTION).sweep(now=NOW) == []
    assert "edge" in store


def test_background_loop_sweeps_on_interval(store):
    add_job(store, "J2", NOW - timedelta(hours=3), completed_at=NOW - timedelta(hours=2))
    sweeper = Sweeper(store, retention=RETENTION, interval=0.01, clock=lambda: NOW)
    sweeper.start()
    try:
        deadline = time.monotonic() + 5
        while len(store) and time.monotonic() < deadline:
            time.sleep(0.01)
        assert sweeper.running
    finally:
        sweeper.stop(timeout=5)
    assert len(store) == 0
    assert not sweeper.running
