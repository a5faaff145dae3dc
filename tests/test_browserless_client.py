from __future__ import annotations

import json
import sys
from pathlib import Path

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from rentflow.core.providers import selectors_for
from rentflow.infrastructure import AutomationError, BrowserlessClient, BrowserlessError, ProviderCredentials


def _request():
    credentials = ProviderCredentials(username="ana@example.com", password="secret")
    return selectors_for("ENGIE Romania").automation_request(credentials)


def test_scrape_posts_function_and_parses_rows():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content.decode("utf-8"))
        assert request.url.params["token"] == "KEY"
        return httpx.Response(
            200,
            json={
                "data": {
                    "rows": [
                        {"cells": [" 1000123456 ", None, "154,20 lei"], "links": ["/f.pdf", ""]},
                        "not a row",
                    ],
                    "url": "https://my.engie.ro/facturi/istoric",
                },
                "type": "application/json",
            },
        )

    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    client = BrowserlessClient("KEY", api_base="https://browserless.example/ignored", http_client=http_client)

    result = client.scrape(_request())

    assert captured["url"].startswith("https://browserless.example/function")
    context = captured["body"]["context"]
    assert context["loginUrl"] == "https://my.engie.ro/autentificare"
    assert context["url"] == "https://my.engie.ro/facturi/istoric"
    assert context["username"] == "ana@example.com"
    assert context["locators"]["bills_table_selector"] == "#istoric-facturi table tbody tr"
    assert "module.exports" in captured["body"]["code"]
    assert "ana@example.com" not in captured["body"]["code"]

    assert result.rows == [{"cells": ["1000123456", "", "154,20 lei"], "links": ["/f.pdf"]}]
    assert result.metadata == {"provider": "browserless", "final_url": "https://my.engie.ro/facturi/istoric"}


def test_scrape_accepts_top_level_rows():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"rows": []})

    client = BrowserlessClient("KEY", http_client=httpx.Client(transport=httpx.MockTransport(handler)))

    assert client.scrape(_request()).rows == []


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, text="Unauthorized"),
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, json={"data": {"url": "https://my.engie.ro"}}),
    ],
)
def test_scrape_failures_raise_browserless_error(response):
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    client = BrowserlessClient("KEY", http_client=httpx.Client(transport=httpx.MockTransport(handler)))

    with pytest.raises(BrowserlessError) as excinfo:
        client.scrape(_request())
    assert isinstance(excinfo.value, AutomationError)


def test_transport_errors_are_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = BrowserlessClient("KEY", http_client=httpx.Client(transport=httpx.MockTransport(handler)))

    with pytest.raises(BrowserlessError):
        client.scrape(_request())


def test_client_requires_key_and_absolute_base():
    with pytest.raises(ValueError):
        BrowserlessClient("")
    with pytest.raises(ValueError):
        BrowserlessClient("KEY", api_base="chrome.browserless.io")


def test_location_and_popup_selectors_travel_in_context():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json={"data": {"rows": []}})

    client = BrowserlessClient("KEY", http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    credentials = ProviderCredentials(username="ana@example.com", password="secret")
    request = selectors_for("ENGIE").automation_request(credentials, location="Str. Lalelelor 4")

    client.scrape(request)

    context = captured["body"]["context"]
    assert context["location"] == "Str. Lalelelor 4"
    assert context["popupCloseSelectors"] == ["button.close", ".myengie-popup-close", "button.myengie-close"]
    assert context["locators"]["location_switch_button"] == "div.nj-modal__footer > button"
    assert context["locators"]["download_bill_selector"]
    assert "Change consumption location" in captured["body"]["code"]
