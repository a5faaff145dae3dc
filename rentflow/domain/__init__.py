"""Domain layer definitions."""

from .contracts import ContractRecord
from .scraping import (
    JOB_STATUS_SUCCESSORS,
    JobStatus,
    ScrapeFailure,
    ScrapeJob,
    ScrapeOutcome,
    ScrapeSuccess,
)

__all__ = [
    "ContractRecord",
    "JOB_STATUS_SUCCESSORS",
    "JobStatus",
    "ScrapeFailure",
    "ScrapeJob",
    "ScrapeOutcome",
    "ScrapeSuccess",
]
