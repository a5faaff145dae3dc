"""Domain entities for utility invoice scrape jobs."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from rentflow.core.schema import InvoiceRecord


class JobStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_JOB_STATUSES


TERMINAL_JOB_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

# A job only moves forward; terminal states have no successors.
JOB_STATUS_SUCCESSORS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.IN_PROGRESS, JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.IN_PROGRESS: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


@dataclass(slots=True)
class ScrapeJob:
    """A request to pull invoices from one provider portal."""

    job_id: str
    provider: str
    utility_provider_id: str
    created_at: datetime
    updated_at: datetime
    status: JobStatus = JobStatus.PENDING
    utility_type: str | None = None
    location: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    records: list[InvoiceRecord] = field(default_factory=list)


@dataclass(slots=True)
class ScrapeSuccess:
    records: list[InvoiceRecord] = field(default_factory=list)


@dataclass(slots=True)
class ScrapeFailure:
    reason: str


ScrapeOutcome = ScrapeSuccess | ScrapeFailure
