"""Infrastructure layer exports."""

from .automation import (
    AutomationBackend,
    AutomationError,
    AutomationRequest,
    AutomationResult,
    NoOpAutomationBackend,
    ProviderCredentials,
    configure_automation_backend,
    get_automation_backend,
)
from .browserless import BrowserlessClient, BrowserlessError
from .contracts import ContractRepository, InMemoryContractRepository
from .scraping import InMemoryScrapeJobRepository, ScrapeJobRepository

__all__ = [
    "AutomationBackend",
    "AutomationError",
    "AutomationRequest",
    "AutomationResult",
    "BrowserlessClient",
    "BrowserlessError",
    "ContractRepository",
    "InMemoryContractRepository",
    "InMemoryScrapeJobRepository",
    "NoOpAutomationBackend",
    "ProviderCredentials",
    "ScrapeJobRepository",
    "configure_automation_backend",
    "get_automation_backend",
]
