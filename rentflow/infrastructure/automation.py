"""Hooks for the headless-browser automation backend.

The service never drives a browser itself.  It hands an
:class:`AutomationRequest` to whichever backend is configured and receives the
invoice table rows back.  Tests and deployments without an API key run against
:class:`NoOpAutomationBackend`, which fails every request with a clear reason.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(slots=True)
class ProviderCredentials:
    username: str
    password: str = field(repr=False)

    def masked_username(self) -> str:
        return f"{self.username[:3]}***"


@dataclass(slots=True)
class AutomationRequest:
    """Everything the backend needs to log in and read one invoice table."""

    url: str
    login_url: str
    locators: dict[str, str]
    credentials: ProviderCredentials
    fallback_url: str | None = None
    location: str | None = None
    popup_close_selectors: list[str] = field(default_factory=list)
    cookies: list[dict[str, str]] = field(default_factory=list)


@dataclass(slots=True)
class AutomationResult:
    """Rows matched by the invoice table locator.

    Each row is ``{"cells": [str, ...], "links": [str, ...]}``.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    metadata: dict[str, object] = field(default_factory=dict)


class AutomationError(RuntimeError):
    """Raised by a backend when the page could not be driven to the invoice table."""


class AutomationBackend(Protocol):
    """Contract for automation integrations."""

    def scrape(self, request: AutomationRequest) -> AutomationResult:
        """Log in, open the invoice page and return the matched table rows."""


class NoOpAutomationBackend:
    """Fallback backend used when no automation provider is configured."""

    def scrape(self, request: AutomationRequest) -> AutomationResult:
        raise AutomationError("automation backend not configured")


_backend: AutomationBackend = NoOpAutomationBackend()


def configure_automation_backend(backend: AutomationBackend) -> None:
    """Install the backend used by the scrape runner."""

    global _backend
    _backend = backend


def get_automation_backend() -> AutomationBackend:
    return _backend
