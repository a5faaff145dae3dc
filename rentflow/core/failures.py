"""User-facing wording for scrape failures reported by the automation backend."""
from __future__ import annotations

# Checked in order; the first rule whose needles appear in the raw message wins.
FAILURE_RULES: list[tuple[tuple[str, ...], str]] = [
    (
        ("automation backend not configured",),
        "Automatic invoice retrieval is not configured. Download the invoices from the provider website.",
    ),
    (
        ("function is shutdown", "EarlyDrop"),
        "The scraping process was terminated because the provider website responded too slowly. "
        "Please try again in a few minutes.",
    ),
    (
        ("Login failed", "Authentication failed"),
        "Failed to log in to the provider website. Please check your credentials and try again.",
    ),
    (
        ("Waiting for login navigation", "/prima-pagina"),
        "Logged in, but the provider website timed out before the invoices page loaded. "
        "Please try again during off-peak hours.",
    ),
    (
        ("CAPTCHA",),
        "The provider website requires a CAPTCHA that could not be solved automatically.",
    ),
    (
        ("Schimbă locul de consum", "alege locul de consum", "Change consumption location"),
        "The process failed while selecting the consumption location. Please try again later.",
    ),
    (
        ("istoric-facturi", "table/tbody", "invoice table not found"),
        "The invoices table did not load. This often happens when the provider website is slow. "
        "Please try again later.",
    ),
    (
        ("Mai târziu", "MyENGIE app popup"),
        "The process was interrupted by a promotional popup on the provider website. Please try again later.",
    ),
    (
        ("navigation timeout", "timeout", "Timeout"),
        "The provider website is responding slowly or is temporarily down. Please try again later.",
    ),
    (
        ("cookie", "session"),
        "The provider website rejected the browser session. Please try again.",
    ),
]

DEFAULT_FAILURE = "An unexpected error occurred while fetching utility invoices."


def describe_failure(message: str | None) -> str:
    if not message or not message.strip():
        return DEFAULT_FAILURE
    for needles, reason in FAILURE_RULES:
        if any(needle in message for needle in needles):
            return reason
    return message.strip()
