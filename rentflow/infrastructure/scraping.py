"""Infrastructure layer for scrape jobs and the invoices they produce."""
from __future__ import annotations

import threading
from dataclasses import replace
from typing import Protocol

from rentflow.core.schema import StoredInvoice
from rentflow.domain import ScrapeJob


class ScrapeJobRepository(Protocol):
    """Persistence contract for scrape jobs and extracted invoices."""

    def next_job_id(self) -> str: ...

    def add_job(self, job: ScrapeJob) -> None: ...

    def get_job(self, job_id: str) -> ScrapeJob | None: ...

    def list_jobs(self, utility_provider_id: str | None = None) -> list[ScrapeJob]: ...

    def save_job(self, job: ScrapeJob) -> None: ...

    def upsert_invoices(self, invoices: list[StoredInvoice]) -> None: ...

    def list_invoices(self, utility_provider_id: str | None = None) -> list[StoredInvoice]: ...

    def reset(self) -> None: ...


class InMemoryScrapeJobRepository:
    """Simple in-memory repository for fast iteration and tests."""

    def __init__(self) -> None:
        self._jobs: dict[str, ScrapeJob] = {}
        self._invoices: dict[tuple[str, str], StoredInvoice] = {}
        self._job_counter = 0
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # jobs
    # ------------------------------------------------------------------
    def next_job_id(self) -> str:
        with self._lock:
            self._job_counter += 1
            return f"job-{self._job_counter:05d}"

    def add_job(self, job: ScrapeJob) -> None:
        with self._lock:
            self._jobs[job.job_id] = replace(job, records=list(job.records))

    def get_job(self, job_id: str) -> ScrapeJob | None:
        job = self._jobs.get(job_id)
        return replace(job, records=list(job.records)) if job else None

    def list_jobs(self, utility_provider_id: str | None = None) -> list[ScrapeJob]:
        jobs = [
            replace(job, records=list(job.records))
            for job in self._jobs.values()
            if utility_provider_id is None or job.utility_provider_id == utility_provider_id
        ]
        jobs.sort(key=lambda item: item.created_at, reverse=True)
        return jobs

    def save_job(self, job: ScrapeJob) -> None:
        with self._lock:
            if job.job_id not in self._jobs:
                raise KeyError(job.job_id)
            self._jobs[job.job_id] = replace(job, records=list(job.records))

    # ------------------------------------------------------------------
    # invoices
    # ------------------------------------------------------------------
    def upsert_invoices(self, invoices: list[StoredInvoice]) -> None:
        with self._lock:
            for invoice in invoices:
                self._invoices[(invoice.utility_provider_id, invoice.number)] = invoice

    def list_invoices(self, utility_provider_id: str | None = None) -> list[StoredInvoice]:
        invoices = [
            invoice
            for (provider_id, _), invoice in self._invoices.items()
            if utility_provider_id is None or provider_id == utility_provider_id
        ]
        invoices.sort(key=lambda item: item.date, reverse=True)
        return invoices

    def reset(self) -> None:
        with self._lock:
            self._jobs.clear()
            self._invoices.clear()
            self._job_counter = 0
