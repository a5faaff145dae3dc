from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from rentflow.application import get_contract_service
from rentflow.core.errors import AmbiguousTransition, ContractNotFound, UnauthorizedTransition
from rentflow.core.transitions import (
    ACTION_LABELS,
    CONTRACT_STATUS_TRANSITIONS,
    STATUS_BADGES,
    ContractAction,
    Role,
    parse_status,
)
from rentflow.domain import ContractRecord

router = APIRouter(prefix="/contracts", tags=["contracts"])


def _serialise_contract(contract: ContractRecord) -> dict[str, Any]:
    return {
        "id": contract.contract_id,
        "contract_type": contract.contract_type,
        "status": contract.status.value,
        "status_badge": STATUS_BADGES[contract.status],
        "landlord_id": contract.landlord_id,
        "tenant_id": contract.tenant_id,
        "property_name": contract.property_name,
        "valid_from": contract.valid_from.isoformat() if contract.valid_from else None,
        "valid_until": contract.valid_until.isoformat() if contract.valid_until else None,
        "metadata": dict(contract.metadata),
        "created_at": contract.created_at.isoformat(),
        "updated_at": contract.updated_at.isoformat(),
    }


def _parse_role(value: Any) -> Role:
    try:
        role = Role(str(value or "").strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"unknown role: {value}") from None
    # system transitions only run through expire_overdue
    if role == Role.SYSTEM:
        raise HTTPException(status_code=403, detail="the system role is not available to API callers")
    return role


def _parse_action(value: Any) -> ContractAction:
    try:
        return ContractAction(str(value or "").strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"unknown action: {value}") from None


def _parse_date(payload: dict, key: str) -> date | None:
    value = payload.get(key)
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{key} must be an ISO date") from None


@router.get("/transitions")
async def get_transition_table() -> dict:
    """Expose the transition table and display labels to the UI."""
    return {
        "items": [transition.as_dict() for transition in CONTRACT_STATUS_TRANSITIONS],
        "action_labels": {action.value: label for action, label in ACTION_LABELS.items()},
        "status_badges": {status.value: badge for status, badge in STATUS_BADGES.items()},
    }


@router.get("")
async def list_contracts(
    landlord_id: str | None = Query(default=None),
    tenant_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
) -> dict:
    service = get_contract_service()
    try:
        status_filter = parse_status(status) if status else None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    contracts = service.list_contracts(landlord_id=landlord_id, tenant_id=tenant_id, status=status_filter)
    return {"items": [_serialise_contract(contract) for contract in contracts]}


@router.post("")
async def create_contract(payload: dict) -> dict:
    contract_type = payload.get("contract_type")
    landlord_id = payload.get("landlord_id")
    if not contract_type:
        raise HTTPException(status_code=400, detail="contract_type is required")
    if not landlord_id:
        raise HTTPException(status_code=400, detail="landlord_id is required")
    metadata = payload.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise HTTPException(status_code=400, detail="metadata must be an object")

    service = get_contract_service()
    try:
        contract = service.create_contract(
            contract_type=str(contract_type),
            landlord_id=str(landlord_id),
            tenant_id=payload.get("tenant_id"),
            property_name=payload.get("property_name"),
            valid_from=_parse_date(payload, "valid_from"),
            valid_until=_parse_date(payload, "valid_until"),
            metadata=metadata,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialise_contract(contract)


@router.post("/expire")
async def expire_overdue_contracts(payload: dict | None = None) -> dict:
    today = _parse_date(payload or {}, "today")
    service = get_contract_service()
    expired = service.expire_overdue(today)
    return {"items": [_serialise_contract(contract) for contract in expired]}


@router.get("/{contract_id}")
async def get_contract(contract_id: str) -> dict:
    service = get_contract_service()
    try:
        contract = service.get_contract(contract_id)
    except ContractNotFound as exc:
        raise HTTPException(status_code=404, detail="contract not found") from exc
    return _serialise_contract(contract)


@router.get("/{contract_id}/actions")
async def list_contract_actions(contract_id: str, role: str = Query(...)) -> dict:
    parsed_role = _parse_role(role)
    service = get_contract_service()
    try:
        actions = service.list_actions(contract_id, parsed_role)
    except ContractNotFound as exc:
        raise HTTPException(status_code=404, detail="contract not found") from exc
    return {"contract_id": contract_id, "role": parsed_role.value, "items": actions}


@router.post("/{contract_id}/actions")
async def perform_contract_action(contract_id: str, payload: dict) -> dict:
    if not payload.get("role"):
        raise HTTPException(status_code=400, detail="role is required")
    if not payload.get("action"):
        raise HTTPException(status_code=400, detail="action is required")
    role = _parse_role(payload["role"])
    action = _parse_action(payload["action"])

    service = get_contract_service()
    try:
        contract = service.perform_action(contract_id, role, action)
    except ContractNotFound as exc:
        raise HTTPException(status_code=404, detail="contract not found") from exc
    except UnauthorizedTransition as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except AmbiguousTransition as exc:  # pragma: no cover - guarded by the table check at start-up
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return _serialise_contract(contract)
