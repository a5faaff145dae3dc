from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from rentflow.application import ScrapeJobService
from rentflow.core.errors import InvalidJobTransition, JobNotFound, UnknownProvider
from rentflow.core.schema import InvoiceRecord
from rentflow.domain import JobStatus, ScrapeFailure, ScrapeSuccess
from rentflow.infrastructure import InMemoryScrapeJobRepository, ProviderCredentials


@pytest.fixture()
def service() -> ScrapeJobService:
    return ScrapeJobService(InMemoryScrapeJobRepository())


@pytest.fixture()
def credentials() -> ProviderCredentials:
    return ProviderCredentials(username="ana@example.com", password="secret")


def _invoice(number: str, amount: str = "154.20", date: str = "2024-03-12") -> InvoiceRecord:
    return InvoiceRecord(number=number, amount=Decimal(amount), date=date, download_ref=f"/facturi/{number}.pdf")


def test_submit_job_starts_pending(service, credentials):
    job = service.submit_job("ENGIE Romania", credentials, utility_provider_id="up-1")

    assert job.status == JobStatus.PENDING
    assert job.provider == "engie_romania"
    assert job.utility_type == "gas"
    assert job.records == []
    assert service.get_job(job.job_id).status == JobStatus.PENDING


def test_submit_job_rejects_unknown_provider_and_missing_input(service, credentials):
    with pytest.raises(UnknownProvider):
        service.submit_job("Electrica", credentials, utility_provider_id="up-1")
    with pytest.raises(ValueError):
        service.submit_job("ENGIE", ProviderCredentials(username="", password="x"), utility_provider_id="up-1")
    with pytest.raises(ValueError):
        service.submit_job("ENGIE", credentials, utility_provider_id="")
    assert service.list_jobs() == []


def test_success_completes_job_and_stores_invoices(service, credentials):
    job = service.submit_job("ENGIE", credentials, utility_provider_id="up-1")
    service.start_job(job.job_id)

    finished = service.advance_job(job.job_id, ScrapeSuccess(records=[_invoice("1000123456")]))

    assert finished.status == JobStatus.COMPLETED
    assert [record.number for record in finished.records] == ["1000123456"]
    assert finished.completed_at is not None
    stored = service.list_invoices("up-1")
    assert len(stored) == 1
    assert stored[0].job_id == job.job_id
    assert stored[0].provider == "engie_romania"


def test_failure_records_reason(service, credentials):
    job = service.submit_job("ENGIE", credentials, utility_provider_id="up-1")

    finished = service.advance_job(job.job_id, ScrapeFailure(reason="Login failed"))

    assert finished.status == JobStatus.FAILED
    assert finished.error_message == "Login failed"
    assert service.list_invoices() == []


@pytest.mark.parametrize(
    "outcome",
    [ScrapeSuccess(records=[]), ScrapeFailure(reason="again")],
)
def test_terminal_job_cannot_advance(service, credentials, outcome):
    job = service.submit_job("ENGIE", credentials, utility_provider_id="up-1")
    service.advance_job(job.job_id, ScrapeFailure(reason="first"))

    with pytest.raises(InvalidJobTransition) as excinfo:
        service.advance_job(job.job_id, outcome)
    assert excinfo.value.current == "failed"
    assert service.get_job(job.job_id).error_message == "first"


def test_start_job_only_from_pending(service, credentials):
    job = service.submit_job("ENGIE", credentials, utility_provider_id="up-1")
    started = service.start_job(job.job_id)
    assert started.status == JobStatus.IN_PROGRESS
    assert started.started_at is not None

    with pytest.raises(InvalidJobTransition):
        service.start_job(job.job_id)


def test_unknown_job_raises(service):
    with pytest.raises(JobNotFound):
        service.get_job("job-99999")


def test_invoices_upsert_by_number(service, credentials):
    first = service.submit_job("ENGIE", credentials, utility_provider_id="up-1")
    service.advance_job(first.job_id, ScrapeSuccess(records=[_invoice("1000123456"), _invoice("1000123457")]))
    second = service.submit_job("ENGIE", credentials, utility_provider_id="up-1")
    service.advance_job(second.job_id, ScrapeSuccess(records=[_invoice("1000123456", amount="99.90")]))

    stored = {invoice.number: invoice for invoice in service.list_invoices("up-1")}
    assert len(stored) == 2
    assert stored["1000123456"].amount == Decimal("99.90")
    assert stored["1000123456"].job_id == second.job_id
    assert service.list_invoices("up-2") == []


def test_jobs_for_different_providers_are_independent(service, credentials):
    first = service.submit_job("ENGIE", credentials, utility_provider_id="up-1")
    second = service.submit_job("ENGIE", credentials, utility_provider_id="up-2")
    service.advance_job(first.job_id, ScrapeFailure(reason="Login failed"))

    assert service.get_job(second.job_id).status == JobStatus.PENDING
    assert [job.job_id for job in service.list_jobs("up-2")] == [second.job_id]
