"""Repository update queue: serialized generation and registration of reports."""

from __future__ import annotations

from .errors import QueueShutdownError, SummaryRegistrationError, UpdateQueueError
from .models import InvalidJobTransitionError, Job, JobOutcome, JobStatus, QueueStatus
from .observability import QueueEventLogger, QueueEventType, truncate_output
from .service import RepositoryUpdateQueue, SummaryRegistrar

__all__ = [
    "InvalidJobTransitionError",
    "Job",
    "JobOutcome",
    "JobStatus",
    "QueueEventLogger",
    "QueueEventType",
    "QueueShutdownError",
    "QueueStatus",
    "RepositoryUpdateQueue",
    "SummaryRegistrar",
    "SummaryRegistrationError",
    "UpdateQueueError",
    "truncate_output",
]
