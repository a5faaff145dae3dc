"""Application services."""

from .contracts import ContractService
from .scraping import ScrapeJobService
from .services import get_contract_service, get_scrape_job_service, reset_application_state

__all__ = [
    "ContractService",
    "ScrapeJobService",
    "get_contract_service",
    "get_scrape_job_service",
    "reset_application_state",
]
