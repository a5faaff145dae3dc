"""Registry of utility providers the scrape job knows how to drive.

Each provider is described by a :class:`ProviderSelectorConfig`: the login URL,
the invoice history URL and the DOM locators the automation backend needs.  The
bundled registry lives in ``rentflow/config/providers.yaml``; a deployment can
point ``RENTFLOW_PROVIDERS_FILE`` at its own copy.
"""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, constr, field_validator

from rentflow.core.errors import UnknownProvider
from rentflow.infrastructure.automation import AutomationRequest, ProviderCredentials

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

Selector = constr(strip_whitespace=True, min_length=1)


def normalise_provider_key(value: str) -> str:
    return re.sub(r"[\s_\-]+", " ", str(value)).strip().lower()


class ProviderSelectorConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider_id: Selector
    display_name: Selector
    aliases: tuple[str, ...] = Field(default_factory=tuple)
    default_utility_type: str | None = None
    login_page: str
    bills_page: str
    fallback_bills_page: str | None = None
    username_selector: Selector
    password_selector: Selector
    login_button_selector: Selector
    bills_table_selector: Selector
    download_bill_selector: Selector
    location_selector: Selector | None = None
    location_switch_button: Selector | None = None
    captcha_selector: Selector | None = None
    popup_close_selectors: tuple[Selector, ...] = Field(default_factory=tuple)

    @field_validator("login_page", "bills_page", "fallback_bills_page")
    @classmethod
    def _require_absolute_url(cls, value: str | None) -> str | None:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"expected an absolute http(s) URL, got {value!r}")
        return value

    def lookup_keys(self) -> set[str]:
        keys = {self.provider_id, self.display_name, *self.aliases}
        return {normalise_provider_key(key) for key in keys}

    def locators(self) -> dict[str, str]:
        """Selector fields keyed by name, skipping the ones the provider does not use."""

        names = [
            "username_selector",
            "password_selector",
            "login_button_selector",
            "bills_table_selector",
            "download_bill_selector",
            "location_selector",
            "location_switch_button",
            "captcha_selector",
        ]
        return {name: getattr(self, name) for name in names if getattr(self, name)}

    def automation_request(
        self,
        credentials: ProviderCredentials,
        *,
        location: str | None = None,
        cookies: list[dict[str, str]] | None = None,
    ) -> AutomationRequest:
        return AutomationRequest(
            url=self.bills_page,
            login_url=self.login_page,
            fallback_url=self.fallback_bills_page,
            locators=self.locators(),
            credentials=credentials,
            location=location or None,
            popup_close_selectors=list(self.popup_close_selectors),
            cookies=list(cookies or []),
        )


class ProviderRegistry:
    """Read-only lookup of provider configs by id, display name or alias."""

    def __init__(self, configs: Iterable[ProviderSelectorConfig]) -> None:
        self._configs: list[ProviderSelectorConfig] = []
        self._index: dict[str, ProviderSelectorConfig] = {}
        for config in configs:
            for key in config.lookup_keys():
                existing = self._index.get(key)
                if existing is not None and existing.provider_id != config.provider_id:
                    raise ValueError(f"provider key {key!r} is claimed by {existing.provider_id} and {config.provider_id}")
                self._index[key] = config
            self._configs.append(config)

    @classmethod
    def from_yaml(cls, path: Path) -> "ProviderRegistry":
        with path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        return cls(ProviderSelectorConfig(**item) for item in data.get("providers") or [])

    def get(self, provider: str) -> ProviderSelectorConfig:
        config = self._index.get(normalise_provider_key(provider))
        if config is None:
            raise UnknownProvider(provider)
        return config

    def list(self) -> list[ProviderSelectorConfig]:
        return list(self._configs)


def _registry_path() -> Path:
    env_path = os.getenv("RENTFLOW_PROVIDERS_FILE")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return CONFIG_DIR / "providers.yaml"


_registry: ProviderRegistry | None = None


def get_provider_registry() -> ProviderRegistry:
    global _registry
    if _registry is None:
        _registry = ProviderRegistry.from_yaml(_registry_path())
    return _registry


def reset_provider_registry() -> None:
    """Forget the loaded registry so the next lookup re-reads the YAML (used in tests)."""

    global _registry
    _registry = None


def selectors_for(provider: str) -> ProviderSelectorConfig:
    """Return the selector bundle for ``provider`` or raise :class:`UnknownProvider`."""

    return get_provider_registry().get(provider)
