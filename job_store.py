import threading
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from job import Job


class JobStore:
    """Thread-safe keyed storage for transcription jobs.

    Updates are copy-on-write: a mutation runs against a copy of the record
    which replaces the stored one only when the mutation returns normally, so
    readers never see a half-applied change. Callers always get copies back.

    A single lock guards the whole map rather than one per job; each critical
    section is a dict lookup plus a dataclass copy, and no I/O runs under it.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def create(self, job: Job) -> str:
        with self._lock:
            if job.job_id in self._jobs:
                raise ValueError(f"Duplicate job id {job.job_id}")
            self._jobs[job.job_id] = replace(job)
        return job.job_id

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job else None

    def update(self, job_id: str, mutation: Callable[[Job], None]) -> Optional[Job]:
        """Apply ``mutation`` atomically, normally one of the ``Job`` transition methods.

        Returns the updated record, or None when the id is unknown.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return None
            draft = replace(job)
            mutation(draft)
            self._jobs[job_id] = draft
            return replace(draft)

    def delete(self, job_id: str, predicate: Optional[Callable[[Job], bool]] = None) -> bool:
        """Delete a job, optionally only if ``predicate`` holds for its current state."""
        with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return False
            if predicate is not None and not predicate(job):
                return False
            del self._jobs[job_id]
            return True

    def list_all(self) -> List[Job]:
        with self._lock:
            return [replace(job) for job in self._jobs.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs
