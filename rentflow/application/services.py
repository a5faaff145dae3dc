"""Process-wide service singletons."""
from __future__ import annotations

from rentflow.infrastructure import InMemoryContractRepository, InMemoryScrapeJobRepository

from .contracts import ContractService
from .scraping import ScrapeJobService

_contract_service = ContractService(InMemoryContractRepository())
_scrape_job_service = ScrapeJobService(InMemoryScrapeJobRepository())


def get_contract_service() -> ContractService:
    """Return the singleton contract service for the process."""

    return _contract_service


def get_scrape_job_service() -> ScrapeJobService:
    """Return the singleton scrape job service for the process."""

    return _scrape_job_service


def reset_application_state() -> None:
    """Reset the in-memory stores (used in tests)."""

    _contract_service.reset()
    _scrape_job_service.reset()
