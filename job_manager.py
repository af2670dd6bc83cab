import logging
import os
import shutil
import tempfile
import threading
import uuid
from contextlib import contextmanager
from typing import Callable, Dict, Optional, Protocol

import config
from errors import (
    DownloadError,
    JobError,
    JobNotFoundError,
    SizeLimitExceeded,
    TranscriptionError,
    ValidationError,
)
from job import Job, Transcript, utcnow
from job_store import JobStore

LOGGER = logging.getLogger(__name__)

PROGRESS_STARTED = 10
PROGRESS_DOWNLOADED = 50
PROGRESS_SIZE_CHECKED = 60
PROGRESS_TRANSCRIBED = 90


class Downloader(Protocol):
    def fetch(self, url: str, timeout: float, output_dir: str) -> str:
        ...


class Transcriber(Protocol):
    def transcribe(self, audio_file: str) -> Transcript:
        ...


@contextmanager
def artifact_workspace(job_id: str, root: Optional[str] = None):
    """Temporary directory for a job's media, removed on every exit path."""
    temp_dir = tempfile.mkdtemp(prefix=f"job-{job_id}-", dir=root)
    LOGGER.info("Using temp dir: %s", temp_dir)
    try:
        yield temp_dir
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


class JobManager:
    """Creates transcription jobs and drives each one on its own worker thread.

    At most ``max_workers`` jobs run at once; later submissions are accepted
    and wait as ``pending`` until a slot frees up.
    """

    def __init__(
        self,
        store: JobStore,
        downloader: Downloader,
        transcriber: Transcriber,
        download_timeout: float = config.DOWNLOAD_TIMEOUT,
        max_file_mb: float = config.MAX_FILE_MB,
        max_workers: int = config.MAX_CONCURRENT_JOBS,
        temp_root: Optional[str] = config.TEMP_DIR,
        clock: Callable = utcnow,
    ) -> None:
        self.store = store
        self.downloader = downloader
        self.transcriber = transcriber
        self.download_timeout = download_timeout
        self.max_file_mb = max_file_mb
        self.temp_root = temp_root
        self._clock = clock
        self._slots = threading.BoundedSemaphore(max_workers)
        self._threads: Dict[str, threading.Thread] = {}
        self._threads_lock = threading.Lock()

    def submit(self, url) -> Job:
        """Record a new pending job and start its worker without waiting on it."""
        if not isinstance(url, str) or not url.strip():
            raise ValidationError("Video URL is required")
        job = Job(job_id=str(uuid.uuid4()), source_url=url.strip(), created_at=self._clock())
        self.store.create(job)
        thread = threading.Thread(
            target=self.process_job, args=(job.job_id, job.source_url), name=f"job-{job.job_id}", daemon=True
        )
        with self._threads_lock:
            self._threads[job.job_id] = thread
        try:
            thread.start()
        except Exception:
            LOGGER.exception("Could not start worker for job %s", job.job_id)
            with self._threads_lock:
                self._threads.pop(job.job_id, None)
            self.store.delete(job.job_id)
            raise
        LOGGER.info("Queued job %s for %s", job.job_id, job.source_url)
        return job

    def status(self, job_id: str) -> dict:
        job = self.store.get(job_id) if job_id else None
        if not job:
            raise JobNotFoundError(job_id)
        return job.to_status()

    def active_jobs(self) -> int:
        with self._threads_lock:
            return len(self._threads)

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Join outstanding workers. Jobs cannot be aborted mid-flight."""
        with self._threads_lock:
            threads = list(self._threads.values())
        LOGGER.info("Shutting down with %d job(s) in flight", len(threads))
        if not wait:
            return
        for thread in threads:
            thread.join(timeout)

    def process_job(self, job_id: str, url: str) -> None:
        """Background worker entry point; waits for a free slot then runs the job."""
        try:
            with self._slots:
                self._run(job_id, url)
        finally:
            with self._threads_lock:
                self._threads.pop(job_id, None)

    def _run(self, job_id: str, url: str) -> None:
        try:
            self._transition(job_id, lambda job: job.start(PROGRESS_STARTED))
            with artifact_workspace(job_id, self.temp_root) as temp_dir:
                audio_file = self._download(url, temp_dir)
                self._advance(job_id, PROGRESS_DOWNLOADED)
                self._check_size(audio_file)
                self._advance(job_id, PROGRESS_SIZE_CHECKED)
                transcript = self._transcribe(audio_file)
                self._advance(job_id, PROGRESS_TRANSCRIBED)
            completed_at = self._clock()
            self._transition(job_id, lambda job: job.complete(transcript, completed_at))
            LOGGER.info("Transcription complete for job %s", job_id)
        except JobNotFoundError:
            LOGGER.warning("Job %s was removed while running; dropping its result", job_id)
        except JobError as e:
            LOGGER.warning("Job %s failed: %s", job_id, e.message)
            self._fail(job_id, e.message)
        except Exception as e:
            LOGGER.exception("Unexpected error processing job %s", job_id)
            self._fail(job_id, str(e))

    def _download(self, url: str, temp_dir: str) -> str:
        LOGGER.info("Downloading video from: %s", url)
        try:
            return self.downloader.fetch(url, self.download_timeout, temp_dir)
        except DownloadError:
            raise
        except Exception as e:
            raise DownloadError(f"Failed to download video: {e}") from e

    def _check_size(self, audio_file: str) -> None:
        size_mb = os.path.getsize(audio_file) / (1024 * 1024)
        LOGGER.info("Audio file size: %.2f MB", size_mb)
        if size_mb > self.max_file_mb:
            raise SizeLimitExceeded(f"File too large ({size_mb:.1f}MB). Max {self.max_file_mb:g}MB supported.")

    def _transcribe(self, audio_file: str) -> Transcript:
        LOGGER.info("Starting transcription...")
        try:
            return self.transcriber.transcribe(audio_file)
        except TranscriptionError:
            raise
        except Exception as e:
            raise TranscriptionError(f"Failed to transcribe: {e}") from e

    def _advance(self, job_id: str, progress: int) -> None:
        self._transition(job_id, lambda job: job.advance(progress))

    def _transition(self, job_id: str, mutation: Callable[[Job], None]) -> Job:
        job = self.store.update(job_id, mutation)
        if not job:
            raise JobNotFoundError(job_id)
        return job

    def _fail(self, job_id: str, message: str) -> None:
        failed_at = self._clock()
        try:
            self._transition(job_id, lambda job: job.fail(message, failed_at))
        except JobError as e:
            LOGGER.error("Could not record failure of job %s: %s", job_id, e.message)
