"""Turn invoice table rows scraped from a provider portal into invoice records.

The ENGIE Romania history table renders each invoice as a card row whose cells
either hold a bare value (``12.03.2024``, ``154,20 lei``) or a labelled one
(``Emisă la: 12.03.2024``).  Labelled values win over positional ones.  Rows
without an invoice number, an amount and an issue date are dropped.
"""
from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from rentflow.core.schema import InvoiceRecord

INVOICE_MARKER = re.compile(r"local_fire_department\s+(\d+)")
INVOICE_NUMBER = re.compile(r"^[A-Z]{0,4}\d{6,}$")
PLAIN_DATE = re.compile(r"^\d{2}\.\d{2}\.\d{4}$")
ANY_DATE = re.compile(r"(\d{2}\.\d{2}\.\d{4})")
PLAIN_KWH = re.compile(r"^([\d.,\-]+)\s*kWh$", re.IGNORECASE)
PLAIN_LEI = re.compile(r"^([\d.,\-]+)\s*(?:lei|ron)$", re.IGNORECASE)
LABELLED_KWH = re.compile(r"([\d.,\-]+)\s*kWh", re.IGNORECASE)
LABELLED_LEI = re.compile(r"([\d.,\-]+)\s*(?:lei|ron)", re.IGNORECASE)

ISSUE_DATE_LABEL = "Emisă la:"
DUE_DATE_LABEL = "Dată scadentă:"
CONSUMPTION_LABEL = "Consum energie:"
AMOUNT_LABEL = "Valoare factură:"
REMAINING_LABEL = "Rest de plată:"
STATUS_LABEL = "Status:"


def romanian_date_to_iso(value: str | None) -> str | None:
    """Convert ``DD.MM.YYYY`` to ``YYYY-MM-DD``; anything else yields ``None``."""

    if not value:
        return None
    parts = value.strip().split(".")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        return None
    day, month, year = parts
    if len(year) != 4:
        return None
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def parse_amount(value: str | None) -> Decimal | None:
    """Parse Romanian formatted numbers such as ``1.234,56`` or ``154,20``."""

    if not value:
        return None
    raw = value.strip().replace(" ", "")
    if "," in raw and "." in raw:
        if raw.rfind(",") > raw.rfind("."):
            raw = raw.replace(".", "").replace(",", ".")
        else:
            raw = raw.replace(",", "")
    elif "," in raw:
        raw = raw.replace(",", ".")
    elif re.fullmatch(r"-?\d{1,3}(\.\d{3})+", raw):
        raw = raw.replace(".", "")
    try:
        result = Decimal(raw)
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def _labelled(cells: list[str], label: str) -> str | None:
    for text in cells:
        if label in text:
            return text
    return None


def _labelled_match(cells: list[str], label: str, pattern: re.Pattern[str]) -> str | None:
    text = _labelled(cells, label)
    if text is None:
        return None
    match = pattern.search(text.split(label, 1)[1])
    return match.group(1) if match else None


def _invoice_number(cells: list[str]) -> str | None:
    for text in cells:
        match = INVOICE_MARKER.search(text)
        if match:
            return match.group(1)
    for text in cells:
        if INVOICE_NUMBER.match(text):
            return text
    return None


def _download_ref(links: list[str]) -> str | None:
    for link in links:
        if ".pdf" in link.lower():
            return link
    return links[0] if links else None


def parse_row(row: dict[str, Any]) -> InvoiceRecord | None:
    cells = [str(cell).strip() for cell in row.get("cells") or [] if cell is not None]
    links = [str(link) for link in row.get("links") or [] if link]

    number = _invoice_number(cells)

    plain_dates = [text for text in cells if PLAIN_DATE.match(text)]
    issue_date = _labelled_match(cells, ISSUE_DATE_LABEL, ANY_DATE) or (plain_dates[0] if plain_dates else None)
    due_date = _labelled_match(cells, DUE_DATE_LABEL, ANY_DATE) or (plain_dates[1] if len(plain_dates) > 1 else None)

    plain_amounts = [match.group(1) for text in cells if (match := PLAIN_LEI.match(text))]
    amount = _labelled_match(cells, AMOUNT_LABEL, LABELLED_LEI) or (plain_amounts[0] if plain_amounts else None)
    remaining = _labelled_match(cells, REMAINING_LABEL, LABELLED_LEI) or (
        plain_amounts[1] if len(plain_amounts) > 1 else None
    )

    plain_kwh = [match.group(1) for text in cells if (match := PLAIN_KWH.match(text))]
    consumption = _labelled_match(cells, CONSUMPTION_LABEL, LABELLED_KWH) or (plain_kwh[0] if plain_kwh else None)

    status_text = _labelled(cells, STATUS_LABEL)
    provider_status = status_text.split(STATUS_LABEL, 1)[1].strip() if status_text else None

    issue_iso = romanian_date_to_iso(issue_date)
    amount_value = parse_amount(amount)
    if not number or issue_iso is None or amount_value is None:
        return None

    download_ref = _download_ref(links)
    utility_type = "gas" if download_ref and "gaz" in download_ref.lower() else "electricity"

    return InvoiceRecord(
        number=number,
        amount=amount_value,
        date=issue_iso,
        download_ref=download_ref,
        due_date=romanian_date_to_iso(due_date),
        consumption_kwh=parse_amount(consumption),
        remaining_amount=parse_amount(remaining),
        provider_status=provider_status or None,
        utility_type=utility_type,
    )


def extract_invoices(rows: Iterable[dict[str, Any]]) -> list[InvoiceRecord]:
    """Parse every row, skipping incomplete ones and repeated invoice numbers."""

    records: list[InvoiceRecord] = []
    seen: set[str] = set()
    for row in rows:
        record = parse_row(row)
        if record is None or record.number in seen:
            continue
        seen.add(record.number)
        records.append(record)
    return records
