"""Application service layer for the contract lifecycle."""
from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any

from rentflow.core.errors import ContractNotFound
from rentflow.core.logs import get_logger
from rentflow.core.transitions import (
    ACTION_LABELS,
    INITIAL_STATUS,
    ContractAction,
    ContractStatus,
    Role,
    apply_transition,
    available_actions,
)
from rentflow.domain import ContractRecord
from rentflow.infrastructure import ContractRepository

logger = get_logger(__name__)


class ContractService:
    """Coordinates contract use cases.

    All status changes go through :meth:`perform_action`, which validates the
    request against the transition table before anything is written.
    """

    def __init__(self, repository: ContractRepository) -> None:
        self._repository = repository

    # ------------------------------------------------------------------
    # contract lifecycle
    # ------------------------------------------------------------------
    def create_contract(
        self,
        *,
        contract_type: str,
        landlord_id: str,
        tenant_id: str | None = None,
        property_name: str | None = None,
        valid_from: date | None = None,
        valid_until: date | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ContractRecord:
        if valid_from and valid_until and valid_until < valid_from:
            raise ValueError("valid_until must not be before valid_from")

        now = datetime.now(timezone.utc)
        contract = ContractRecord(
            contract_id=self._repository.next_contract_id(),
            contract_type=contract_type,
            landlord_id=landlord_id,
            tenant_id=tenant_id,
            property_name=property_name,
            valid_from=valid_from,
            valid_until=valid_until,
            metadata=dict(metadata or {}),
            status=INITIAL_STATUS,
            created_at=now,
            updated_at=now,
        )
        self._repository.add(contract)
        logger.info("created contract %s for landlord %s", contract.contract_id, landlord_id)
        return contract

    def get_contract(self, contract_id: str) -> ContractRecord:
        contract = self._repository.get(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)
        return contract

    def list_contracts(
        self,
        *,
        landlord_id: str | None = None,
        tenant_id: str | None = None,
        status: ContractStatus | None = None,
    ) -> list[ContractRecord]:
        contracts = self._repository.list()
        if landlord_id:
            contracts = [item for item in contracts if item.landlord_id == landlord_id]
        if tenant_id:
            contracts = [item for item in contracts if item.tenant_id == tenant_id]
        if status:
            contracts = [item for item in contracts if item.status == status]
        contracts.sort(key=lambda item: item.created_at, reverse=True)
        return contracts

    # ------------------------------------------------------------------
    # transitions
    # ------------------------------------------------------------------
    def list_actions(self, contract_id: str, role: Role) -> list[dict[str, str]]:
        contract = self.get_contract(contract_id)
        return [
            {
                "action": transition.action.value,
                "label": ACTION_LABELS[transition.action],
                "to_status": transition.to_status.value,
            }
            for transition in available_actions(contract.status, role)
        ]

    def perform_action(self, contract_id: str, role: Role, action: ContractAction) -> ContractRecord:
        contract = self.get_contract(contract_id)
        new_status = apply_transition(contract.status, role, action)
        updated = replace(contract, status=new_status, updated_at=datetime.now(timezone.utc))
        self._repository.save(updated)
        logger.info(
            "contract %s: %s by %s, %s -> %s",
            contract_id,
            action.value,
            role.value,
            contract.status.value,
            new_status.value,
        )
        return updated

    def expire_overdue(self, today: date | None = None) -> list[ContractRecord]:
        """Expire every active contract whose ``valid_until`` lies before ``today``."""

        today = today or datetime.now(timezone.utc).date()
        expired: list[ContractRecord] = []
        for contract in self.list_contracts(status=ContractStatus.ACTIVE):
            if contract.valid_until is None or contract.valid_until >= today:
                continue
            expired.append(self.perform_action(contract.contract_id, Role.SYSTEM, ContractAction.EXPIRE))
        return expired

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()
