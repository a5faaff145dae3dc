from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.append(str(Path(__file__).resolve().parents[1]))

from rentflow.core.schema import InvoiceRecord
from rentflow.extractors.invoice_rows import (
    extract_invoices,
    parse_amount,
    parse_row,
    romanian_date_to_iso,
)


def test_romanian_dates_and_amounts():
    assert romanian_date_to_iso("12.03.2024") == "2024-03-12"
    assert romanian_date_to_iso("31.13.2024") is None
    assert romanian_date_to_iso("31.02.2024") is None
    assert romanian_date_to_iso("29.02.2024") == "2024-02-29"
    assert romanian_date_to_iso("2024-03-12") is None
    assert parse_amount("1.234,56") == Decimal("1234.56")
    assert parse_amount("154,20") == Decimal("154.20")
    assert parse_amount("1.234") == Decimal("1234")
    assert parse_amount("n/a") is None


def test_labelled_card_row():
    row = {
        "cells": [
            "local_fire_department 1000123456",
            "Emisă la: 12.03.2024",
            "Dată scadentă: 27.03.2024",
            "Consum energie: 1.520 kWh",
            "Valoare factură: 1.234,56 lei",
            "Rest de plată: 0,00 lei",
            "Status: Plătită",
        ],
        "links": ["/facturi/gaz/1000123456.pdf"],
    }

    record = parse_row(row)

    assert record is not None
    assert record.number == "1000123456"
    assert record.date == "2024-03-12"
    assert record.due_date == "2024-03-27"
    assert record.amount == Decimal("1234.56")
    assert record.remaining_amount == Decimal("0.00")
    assert record.consumption_kwh == Decimal("1520")
    assert record.provider_status == "Plătită"
    assert record.download_ref == "/facturi/gaz/1000123456.pdf"
    assert record.utility_type == "gas"


def test_plain_positional_row():
    row = {
        "cells": ["FE2000123456", "01.02.2024", "15.02.2024", "320 kWh", "210,40 lei", "10,00 lei"],
        "links": ["/detalii", "/download/factura.pdf"],
    }

    record = parse_row(row)

    assert record is not None
    assert record.number == "FE2000123456"
    assert record.date == "2024-02-01"
    assert record.due_date == "2024-02-15"
    assert record.amount == Decimal("210.40")
    assert record.remaining_amount == Decimal("10.00")
    assert record.download_ref == "/download/factura.pdf"
    assert record.utility_type == "electricity"


def test_incomplete_rows_are_skipped():
    assert parse_row({"cells": ["Emisă la: 12.03.2024", "154,20 lei"], "links": []}) is None
    assert parse_row({"cells": ["1000123456", "154,20 lei"], "links": []}) is None
    assert parse_row({"cells": ["1000123456", "12.03.2024"], "links": []}) is None
    assert parse_row({}) is None


def test_extract_invoices_drops_duplicates():
    rows = [
        {"cells": ["1000123456", "12.03.2024", "154,20 lei"], "links": []},
        {"cells": ["header"], "links": []},
        {"cells": ["1000123456", "12.03.2024", "154,20 lei"], "links": []},
        {"cells": ["1000123457", "12.04.2024", "99,00 lei"], "links": []},
    ]

    records = extract_invoices(rows)

    assert [record.number for record in records] == ["1000123456", "1000123457"]


def test_impossible_dates_are_rejected():
    assert parse_row({"cells": ["1000123456", "31.02.2024", "154,20 lei"], "links": []}) is None
    with pytest.raises(ValidationError):
        InvoiceRecord(number="1000123456", amount=Decimal("1"), date="2024-02-31")
    with pytest.raises(ValidationError):
        InvoiceRecord(number="1000123456", amount=Decimal("1"), date="2024-02-01", due_date="2024-13-01")
