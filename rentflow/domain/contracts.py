"""Domain entities for rental contracts."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from rentflow.core.transitions import INITIAL_STATUS, ContractStatus


@dataclass(slots=True)
class ContractRecord:
    """A rental contract as held by the contract store."""

    contract_id: str
    contract_type: str
    landlord_id: str
    created_at: datetime
    updated_at: datetime
    status: ContractStatus = INITIAL_STATUS
    tenant_id: str | None = None
    property_name: str | None = None
    valid_from: date | None = None
    valid_until: date | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
