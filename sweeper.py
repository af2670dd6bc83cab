import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import config
from job import Job, utcnow
from job_store import JobStore

LOGGER = logging.getLogger(__name__)


class Sweeper:
    """Periodically evicts job records older than the retention window.

    A record is aged from ``completed_at``, else ``failed_at``, else
    ``created_at``, so jobs that never finish are evicted too.
    """

    def __init__(
        self,
        store: JobStore,
        retention: timedelta = timedelta(seconds=config.JOB_RETENTION_SECONDS),
        interval: float = config.SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.retention = retention
        self.interval = interval
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def is_expired(self, job: Job, now: datetime) -> bool:
        return now - job.reference_time > self.retention

    def sweep(self, now: Optional[datetime] = None) -> List[str]:
        """Delete every expired job once and return the removed ids."""
        now = now or self._clock()
        removed = []
        for job in self.store.list_all():
            if not self.is_expired(job, now):
                continue
            # re-checked under the store lock in case the job moved on since the snapshot
            if self.store.delete(job.job_id, lambda current: self.is_expired(current, now)):
                removed.append(job.job_id)
        if removed:
            LOGGER.info("Swept %d expired job(s)", len(removed))
        return removed

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="job-sweeper", daemon=True)
        self._thread.start()
        LOGGER.info("Sweeper started: every %ss, retention %s", self.interval, self.retention)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.sweep()
            except Exception:
                LOGGER.exception("Sweep failed")
