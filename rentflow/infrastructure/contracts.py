"""Infrastructure layer for contract persistence."""
from __future__ import annotations

import threading
from dataclasses import replace
from typing import Protocol

from rentflow.domain import ContractRecord


class ContractRepository(Protocol):
    """Persistence contract for rental contracts."""

    def next_contract_id(self) -> str: ...

    def add(self, contract: ContractRecord) -> None: ...

    def get(self, contract_id: str) -> ContractRecord | None: ...

    def list(self) -> list[ContractRecord]: ...

    def save(self, contract: ContractRecord) -> None: ...

    def reset(self) -> None: ...


class InMemoryContractRepository:
    """Simple in-memory repository for fast iteration and tests."""

    def __init__(self) -> None:
        self._contracts: dict[str, ContractRecord] = {}
        self._counter = 0
        self._lock = threading.Lock()

    def next_contract_id(self) -> str:
        with self._lock:
            self._counter += 1
            return f"ctr-{self._counter:05d}"

    def add(self, contract: ContractRecord) -> None:
        with self._lock:
            if contract.contract_id in self._contracts:
                raise KeyError(f"contract {contract.contract_id} already exists")
            self._contracts[contract.contract_id] = replace(contract)

    def get(self, contract_id: str) -> ContractRecord | None:
        contract = self._contracts.get(contract_id)
        return replace(contract) if contract else None

    def list(self) -> list[ContractRecord]:
        return [replace(contract) for contract in self._contracts.values()]

    def save(self, contract: ContractRecord) -> None:
        with self._lock:
            if contract.contract_id not in self._contracts:
                raise KeyError(contract.contract_id)
            self._contracts[contract.contract_id] = replace(contract)

    def reset(self) -> None:
        with self._lock:
            self._contracts.clear()
            self._counter = 0
