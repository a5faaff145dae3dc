"""Application service layer for utility invoice scrape jobs."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from rentflow.core.errors import InvalidJobTransition, JobNotFound
from rentflow.core.logs import get_logger
from rentflow.core.providers import ProviderSelectorConfig, selectors_for
from rentflow.core.schema import StoredInvoice
from rentflow.domain import (
    JOB_STATUS_SUCCESSORS,
    JobStatus,
    ScrapeFailure,
    ScrapeJob,
    ScrapeOutcome,
    ScrapeSuccess,
)
from rentflow.infrastructure import ProviderCredentials, ScrapeJobRepository

logger = get_logger(__name__)


class ScrapeJobService:
    """Owns the scrape job lifecycle: submit, start, and report an outcome.

    The scrape itself runs elsewhere (see ``rentflow.workers.scrape_runner``);
    this service only records what the runner reports.
    """

    POLL_INTERVAL_SECONDS = 5
    POLL_MAX_SECONDS = 300

    def __init__(
        self,
        repository: ScrapeJobRepository,
        selectors: Callable[[str], ProviderSelectorConfig] = selectors_for,
    ) -> None:
        self._repository = repository
        self._selectors = selectors

    # ------------------------------------------------------------------
    # job lifecycle
    # ------------------------------------------------------------------
    def submit_job(
        self,
        provider: str,
        credentials: ProviderCredentials,
        *,
        utility_provider_id: str,
        utility_type: str | None = None,
        location: str | None = None,
    ) -> ScrapeJob:
        config = self._selectors(provider)
        if not credentials.username or not credentials.password:
            raise ValueError("username and password are required")
        if not utility_provider_id:
            raise ValueError("utility_provider_id is required")

        now = datetime.now(timezone.utc)
        job = ScrapeJob(
            job_id=self._repository.next_job_id(),
            provider=config.provider_id,
            utility_provider_id=utility_provider_id,
            utility_type=utility_type or config.default_utility_type,
            location=location,
            created_at=now,
            updated_at=now,
        )
        self._repository.add_job(job)
        logger.info(
            "submitted scrape job %s for %s (user %s)",
            job.job_id,
            config.display_name,
            credentials.masked_username(),
        )
        return job

    def start_job(self, job_id: str) -> ScrapeJob:
        job = self.get_job(job_id)
        if job.status != JobStatus.PENDING:
            raise InvalidJobTransition(job_id, job.status.value, JobStatus.IN_PROGRESS.value)
        now = datetime.now(timezone.utc)
        started = replace(job, status=JobStatus.IN_PROGRESS, started_at=now, updated_at=now)
        self._repository.save_job(started)
        logger.info("scrape job %s started", job_id)
        return started

    def advance_job(self, job_id: str, outcome: ScrapeOutcome) -> ScrapeJob:
        job = self.get_job(job_id)
        target = JobStatus.COMPLETED if isinstance(outcome, ScrapeSuccess) else JobStatus.FAILED
        if target not in JOB_STATUS_SUCCESSORS[job.status]:
            raise InvalidJobTransition(job_id, job.status.value, target.value)

        now = datetime.now(timezone.utc)
        if isinstance(outcome, ScrapeFailure):
            finished = replace(
                job,
                status=JobStatus.FAILED,
                error_message=outcome.reason,
                completed_at=now,
                updated_at=now,
            )
            self._repository.save_job(finished)
            logger.warning("scrape job %s failed: %s", job_id, outcome.reason)
            return finished

        finished = replace(
            job,
            status=JobStatus.COMPLETED,
            records=list(outcome.records),
            error_message=None,
            completed_at=now,
            updated_at=now,
        )
        self._repository.save_job(finished)
        self._repository.upsert_invoices(
            [
                StoredInvoice(
                    **record.model_dump(),
                    utility_provider_id=job.utility_provider_id,
                    provider=job.provider,
                    job_id=job.job_id,
                )
                for record in outcome.records
            ]
        )
        logger.info("scrape job %s completed with %d invoices", job_id, len(outcome.records))
        return finished

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def get_job(self, job_id: str) -> ScrapeJob:
        job = self._repository.get_job(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def list_jobs(self, utility_provider_id: str | None = None) -> list[ScrapeJob]:
        return self._repository.list_jobs(utility_provider_id)

    def list_invoices(self, utility_provider_id: str | None = None) -> list[StoredInvoice]:
        return self._repository.list_invoices(utility_provider_id)

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()
