from __future__ import annotations

import asyncio

from rentflow.application import ScrapeJobService, get_scrape_job_service
from rentflow.core.errors import InvalidJobTransition
from rentflow.core.failures import describe_failure
from rentflow.core.logs import get_logger
from rentflow.core.providers import selectors_for
from rentflow.domain import ScrapeFailure, ScrapeJob, ScrapeSuccess
from rentflow.extractors.invoice_rows import extract_invoices
from rentflow.infrastructure import (
    AutomationBackend,
    AutomationError,
    ProviderCredentials,
    get_automation_backend,
)

logger = get_logger(__name__)


class ScrapeRunner:
    """Drives one submitted job through the automation backend.

    Every error raised by the backend or the row extractor is recorded as a job
    failure; nothing propagates to the code that submitted the job.
    """

    def __init__(
        self,
        service: ScrapeJobService | None = None,
        backend: AutomationBackend | None = None,
    ) -> None:
        self._service = service
        self._backend = backend

    @property
    def service(self) -> ScrapeJobService:
        return self._service or get_scrape_job_service()

    @property
    def backend(self) -> AutomationBackend:
        return self._backend or get_automation_backend()

    def _scrape(self, job: ScrapeJob, credentials: ProviderCredentials) -> ScrapeSuccess:
        config = selectors_for(job.provider)
        result = self.backend.scrape(config.automation_request(credentials, location=job.location))
        records = extract_invoices(result.rows)
        logger.info("job %s: %d of %d rows parsed as invoices", job.job_id, len(records), len(result.rows))
        return ScrapeSuccess(records=records)

    async def run(self, job_id: str, credentials: ProviderCredentials) -> ScrapeJob:
        try:
            job = self.service.start_job(job_id)
        except InvalidJobTransition:
            logger.warning("job %s was already picked up, skipping", job_id)
            return self.service.get_job(job_id)

        try:
            outcome = await asyncio.to_thread(self._scrape, job, credentials)
        except AutomationError as exc:
            outcome = ScrapeFailure(reason=describe_failure(str(exc)))
        except Exception as exc:  # pragma: no cover - defensive branch
            logger.exception("job %s crashed", job_id)
            outcome = ScrapeFailure(reason=describe_failure(str(exc)))

        try:
            return self.service.advance_job(job_id, outcome)
        except InvalidJobTransition:
            # an external runner reported through the outcome callback first
            logger.warning("job %s already finished, dropping in-process outcome", job_id)
            return self.service.get_job(job_id)


_runner: ScrapeRunner | None = None


def get_scrape_runner() -> ScrapeRunner:
    global _runner
    if _runner is None:
        _runner = ScrapeRunner()
    return _runner
