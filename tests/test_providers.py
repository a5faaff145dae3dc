from __future__ import annotations

import sys
from pathlib import Path
from urllib.parse import urlparse

import pytest
from pydantic import ValidationError

sys.path.append(str(Path(__file__).resolve().parents[1]))

from rentflow.core.errors import UnknownProvider
from rentflow.core.providers import (
    ProviderRegistry,
    ProviderSelectorConfig,
    get_provider_registry,
    reset_provider_registry,
    selectors_for,
)
from rentflow.infrastructure import ProviderCredentials


@pytest.fixture(autouse=True)
def fresh_registry(monkeypatch):
    monkeypatch.delenv("RENTFLOW_PROVIDERS_FILE", raising=False)
    reset_provider_registry()
    yield
    reset_provider_registry()


def _config(**overrides) -> dict:
    data = {
        "provider_id": "demo",
        "display_name": "Demo Power",
        "login_page": "https://demo.example/login",
        "bills_page": "https://demo.example/bills",
        "username_selector": "#user",
        "password_selector": "#pass",
        "login_button_selector": "button",
        "bills_table_selector": "table tr",
        "download_bill_selector": "a.pdf",
    }
    data.update(overrides)
    return data


def test_engie_romania_selectors_are_complete():
    config = selectors_for("ENGIE Romania")

    parsed = urlparse(config.login_page)
    assert parsed.scheme == "https"
    assert parsed.netloc == "my.engie.ro"
    for name, value in config.locators().items():
        assert isinstance(value, str) and value.strip(), name
    assert {"username_selector", "password_selector", "bills_table_selector"} <= set(config.locators())


@pytest.mark.parametrize("name", ["engie_romania", "ENGIE", "engie-romania", "  Engie   Romania "])
def test_provider_aliases_resolve_to_same_config(name):
    assert selectors_for(name).provider_id == "engie_romania"


def test_unknown_provider_raises():
    with pytest.raises(UnknownProvider) as excinfo:
        selectors_for("Electrica")
    assert excinfo.value.provider == "Electrica"


def test_automation_request_carries_urls_and_credentials():
    config = selectors_for("ENGIE")
    credentials = ProviderCredentials(username="ana@example.com", password="secret")

    request = config.automation_request(credentials)

    assert request.url == config.bills_page
    assert request.login_url == config.login_page
    assert request.fallback_url == config.fallback_bills_page
    assert request.locators["bills_table_selector"] == config.bills_table_selector
    assert request.credentials is credentials
    assert "secret" not in repr(credentials)


def test_config_rejects_relative_urls_and_blank_selectors():
    with pytest.raises(ValidationError):
        ProviderSelectorConfig(**_config(login_page="/login"))
    with pytest.raises(ValidationError):
        ProviderSelectorConfig(**_config(username_selector="   "))


def test_registry_rejects_shared_alias():
    first = ProviderSelectorConfig(**_config(aliases=("DEMO",)))
    second = ProviderSelectorConfig(**_config(provider_id="other", display_name="Other", aliases=("demo",)))
    with pytest.raises(ValueError):
        ProviderRegistry([first, second])


def test_registry_file_can_be_overridden(tmp_path, monkeypatch):
    path = tmp_path / "providers.yaml"
    path.write_text(
        "\n".join(
            [
                "providers:",
                "  - provider_id: demo",
                "    display_name: Demo Power",
                "    login_page: https://demo.example/login",
                "    bills_page: https://demo.example/bills",
                "    username_selector: '#user'",
                "    password_selector: '#pass'",
                "    login_button_selector: button",
                "    bills_table_selector: table tr",
                "    download_bill_selector: a.pdf",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("RENTFLOW_PROVIDERS_FILE", str(path))
    reset_provider_registry()

    assert [config.provider_id for config in get_provider_registry().list()] == ["demo"]
    assert selectors_for("Demo Power").bills_page == "https://demo.example/bills"
    with pytest.raises(UnknownProvider):
        selectors_for("ENGIE")
