"""Integration with the Browserless hosted Chrome ``/function`` API."""
from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import httpx

from .automation import AutomationError, AutomationRequest, AutomationResult

# Runs inside the remote browser.  Credentials and locators arrive through
# ``context`` so nothing user supplied is interpolated into the source.
SCRAPE_FUNCTION = """
module.exports = async ({ page, context }) => {
  const {
    loginUrl, url, fallbackUrl, locators, username, password,
    location, popupCloseSelectors, cookies, timeout,
  } = context;

  const dismissPopups = async () => {
    for (const selector of popupCloseSelectors || []) {
      const button = await page.$(selector);
      if (button) {
        await button.click();
        await new Promise((resolve) => setTimeout(resolve, 1000));
        break;
      }
    }
  };

  if (cookies && cookies.length) {
    await page.setCookie(...cookies);
  }
  await page.goto(loginUrl, { waitUntil: 'networkidle2', timeout });
  if (locators.captcha_selector && (await page.$(locators.captcha_selector))) {
    throw new Error('CAPTCHA challenge on login page');
  }
  await page.waitForSelector(locators.username_selector, { visible: true, timeout });
  await page.type(locators.username_selector, username);
  await page.type(locators.password_selector, password);
  await Promise.all([
    page.click(locators.login_button_selector),
    page.waitForNavigation({ waitUntil: 'networkidle2', timeout }),
  ]);
  await dismissPopups();

  if (location && locators.location_selector) {
    const picked = await page.$$eval(
      locators.location_selector,
      (entries, wanted) => {
        const match = entries.find((el) => (el.textContent || '').includes(wanted));
        if (match) {
          match.click();
        }
        return Boolean(match);
      },
      location,
    );
    if (!picked) {
      throw new Error('Change consumption location failed: ' + location);
    }
    if (locators.location_switch_button) {
      await Promise.all([
        page.click(locators.location_switch_button),
        page.waitForNavigation({ waitUntil: 'networkidle2', timeout }).catch(() => null),
      ]);
    }
  }

  await page.goto(url, { waitUntil: 'networkidle2', timeout });
  await dismissPopups();
  let found = await page.$(locators.bills_table_selector);
  if (!found && fallbackUrl) {
    await page.goto(fallbackUrl, { waitUntil: 'networkidle2', timeout });
    await dismissPopups();
    found = await page.$(locators.bills_table_selector);
  }
  if (!found) {
    throw new Error('invoice table not found: ' + locators.bills_table_selector);
  }
  const rows = await page.$$eval(
    locators.bills_table_selector,
    (trs, downloadSelector) => trs.map((tr) => {
      const downloads = downloadSelector
        ? Array.from(tr.querySelectorAll(downloadSelector))
            .map((el) => el.closest('a'))
            .filter(Boolean)
            .map((a) => a.getAttribute('href'))
        : [];
      const anchors = Array.from(tr.querySelectorAll('a[href]')).map((a) => a.getAttribute('href'));
      return {
        cells: Array.from(tr.querySelectorAll('td')).map((td) => (td.textContent || '').trim()),
        links: [...downloads, ...anchors.filter((href) => !downloads.includes(href))],
      };
    }),
    locators.download_bill_selector || null,
  );
  return { data: { rows, url: page.url() }, type: 'application/json' };
};
""".strip()


class BrowserlessError(AutomationError):
    """Raised when the Browserless service rejects a request or returns garbage."""


class BrowserlessClient:
    """Client for the Browserless ``/function`` endpoint."""

    def __init__(
        self,
        api_key: str,
        *,
        api_base: str = "https://chrome.browserless.io",
        navigation_timeout_ms: int = 30000,
        timeout: float = 120.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")
        if not api_key:
            raise ValueError("api_key is required")

        self._api_key = api_key
        self._request_url = f"{parsed.scheme}://{parsed.netloc}/function"
        self._navigation_timeout_ms = navigation_timeout_ms
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _build_payload(self, request: AutomationRequest) -> dict[str, Any]:
        return {
            "code": SCRAPE_FUNCTION,
            "context": {
                "loginUrl": request.login_url,
                "url": request.url,
                "fallbackUrl": request.fallback_url,
                "locators": dict(request.locators),
                "username": request.credentials.username,
                "password": request.credentials.password,
                "location": request.location,
                "popupCloseSelectors": list(request.popup_close_selectors),
                "cookies": list(request.cookies),
                "timeout": self._navigation_timeout_ms,
            },
        }

    @staticmethod
    def _normalise_rows(value: Any) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        if not isinstance(value, list):
            return rows
        for row in value:
            if not isinstance(row, dict):
                continue
            cells = row.get("cells")
            links = row.get("links")
            rows.append(
                {
                    "cells": [str(cell).strip() if cell is not None else "" for cell in cells]
                    if isinstance(cells, list)
                    else [],
                    "links": [str(link) for link in links if link] if isinstance(links, list) else [],
                }
            )
        return rows

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def scrape(self, request: AutomationRequest) -> AutomationResult:
        try:
            response = self._client.post(self._request_url, params={"token": self._api_key}, json=self._build_payload(request))
        except httpx.HTTPError as exc:
            raise BrowserlessError(f"Browserless request failed: {exc}") from exc

        if response.status_code >= 400:
            raise BrowserlessError(f"Browserless request failed: {response.status_code} {response.text.strip()}")

        try:
            body = response.json()
        except ValueError as exc:
            raise BrowserlessError("Browserless returned a non-JSON body") from exc

        data = body.get("data", body) if isinstance(body, dict) else None
        if not isinstance(data, dict) or "rows" not in data:
            raise BrowserlessError("Browserless response did not contain invoice rows")

        metadata: dict[str, object] = {"provider": "browserless"}
        if data.get("url"):
            metadata["final_url"] = data["url"]
        return AutomationResult(rows=self._normalise_rows(data["rows"]), metadata=metadata)

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


__all__ = ["BrowserlessClient", "BrowserlessError", "SCRAPE_FUNCTION"]
