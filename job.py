from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from errors import InvalidTransitionError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETE, JobStatus.ERROR)


@dataclass(frozen=True)
class Segment:
    start: float
    end: float
    text: str

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "text": self.text}


@dataclass(frozen=True)
class Transcript:
    """Time-aligned transcript produced for a finished job."""

    text: str
    segments: Tuple[Segment, ...] = ()
    language: Optional[str] = None
    duration: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "segments": [segment.to_dict() for segment in self.segments],
            "language": self.language,
            "duration": self.duration,
        }


@dataclass
class Job:
    """State of a transcription job.

    Records are only changed through the transition methods below, which
    keep the status graph ``pending -> processing -> complete | error`` and
    a non-decreasing ``progress``.
    """

    job_id: str
    source_url: str
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    result: Optional[Transcript] = None
    error_message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def reference_time(self) -> datetime:
        """Timestamp used to age the record for retention."""
        return self.completed_at or self.failed_at or self.created_at

    def start(self, progress: int) -> None:
        if self.status is not JobStatus.PENDING:
            raise InvalidTransitionError(f"Cannot start a job that is {self.status.value}")
        self.status = JobStatus.PROCESSING
        self.advance(progress)

    def advance(self, progress: int) -> None:
        if self.status is not JobStatus.PROCESSING:
            raise InvalidTransitionError(f"Cannot update progress of a job that is {self.status.value}")
        if not 0 <= progress <= 100:
            raise InvalidTransitionError(f"Progress out of range: {progress}")
        if progress < self.progress:
            raise InvalidTransitionError(f"Progress cannot go back from {self.progress} to {progress}")
        self.progress = progress

    def complete(self, result: Transcript, at: datetime) -> None:
        if self.status is not JobStatus.PROCESSING:
            raise InvalidTransitionError(f"Cannot complete a job that is {self.status.value}")
        self.status = JobStatus.COMPLETE
        self.progress = 100
        self.completed_at = at
        self.result = result

    def fail(self, message: str, at: datetime) -> None:
        if self.status is not JobStatus.PROCESSING:
            raise InvalidTransitionError(f"Cannot fail a job that is {self.status.value}")
        self.status = JobStatus.ERROR
        self.failed_at = at
        self.error_message = message

    def to_status(self) -> dict:
        """Client-facing projection; fields of the other terminal branch never appear."""
        data = {"jobId": self.job_id, "status": self.status.value}
        if self.status is JobStatus.COMPLETE:
            data.update(self.result.to_dict())
        elif self.status is JobStatus.ERROR:
            data["errorMessage"] = self.error_message
        else:
            data["progress"] = self.progress
        return data
