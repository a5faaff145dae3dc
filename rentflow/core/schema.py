from __future__ import annotations

from datetime import date as calendar_date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, constr, field_validator


class InvoiceRecord(BaseModel):
    number: constr(min_length=1)
    amount: Decimal
    date: constr(pattern=r"^\d{4}-\d{2}-\d{2}$")
    download_ref: str | None = None
    due_date: constr(pattern=r"^\d{4}-\d{2}-\d{2}$") | None = None
    consumption_kwh: Decimal | None = None
    remaining_amount: Decimal | None = None
    provider_status: str | None = None
    utility_type: Literal["gas", "electricity"] = "electricity"
    currency: Literal["RON"] = "RON"

    @field_validator("date", "due_date")
    @classmethod
    def _require_calendar_date(cls, value: str | None) -> str | None:
        if value is not None:
            calendar_date.fromisoformat(value)
        return value


class StoredInvoice(InvoiceRecord):
    utility_provider_id: str
    provider: str
    job_id: str
