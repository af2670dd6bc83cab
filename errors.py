"""Errors raised while submitting, tracking and running transcription jobs."""


class JobError(Exception):
    """Base class for job failures that carry a human-readable message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(JobError):
    """The submitted request is missing or has bad input."""


class JobNotFoundError(JobError):
    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__("Job not found")


class InvalidTransitionError(JobError):
    """A mutation would leave the job state graph or lower its progress."""


class DownloadError(JobError):
    pass


class SizeLimitExceeded(JobError):
    pass


class TranscriptionError(JobError):
    pass
