"""Contract lifecycle state machine.

The transition table is the single source of truth for which actions a role may
take on a contract in a given status.  It is consumed both by the UI (to decide
which buttons to render) and by :class:`rentflow.application.ContractService`
(to validate a mutation before it is persisted).  Every function here is pure.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from rentflow.core.errors import AmbiguousTransition, TransitionTableError, UnauthorizedTransition


class ContractStatus(str, Enum):
    DRAFT = "draft"
    PENDING_SIGNATURE = "pending_signature"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class Role(str, Enum):
    LANDLORD = "landlord"
    TENANT = "tenant"
    SERVICE_PROVIDER = "service_provider"
    SYSTEM = "system"


class ContractAction(str, Enum):
    SEND_INVITE = "send_invite"
    SIGN = "sign"
    CANCEL = "cancel"
    EXPIRE = "expire"


INITIAL_STATUS = ContractStatus.DRAFT

# Older rows in the hosted store still carry these values.
LEGACY_STATUS_ALIASES: dict[str, ContractStatus] = {
    "pending": ContractStatus.PENDING_SIGNATURE,
    "signed": ContractStatus.ACTIVE,
}


@dataclass(frozen=True, slots=True)
class ContractTransition:
    from_status: ContractStatus
    to_status: ContractStatus
    action: ContractAction
    role: Role

    def as_dict(self) -> dict[str, str]:
        return {
            "from": self.from_status.value,
            "to": self.to_status.value,
            "action": self.action.value,
            "role": self.role.value,
        }


CONTRACT_STATUS_TRANSITIONS: tuple[ContractTransition, ...] = (
    ContractTransition(ContractStatus.DRAFT, ContractStatus.PENDING_SIGNATURE, ContractAction.SEND_INVITE, Role.LANDLORD),
    ContractTransition(ContractStatus.DRAFT, ContractStatus.CANCELLED, ContractAction.CANCEL, Role.LANDLORD),
    ContractTransition(ContractStatus.PENDING_SIGNATURE, ContractStatus.ACTIVE, ContractAction.SIGN, Role.TENANT),
    ContractTransition(ContractStatus.PENDING_SIGNATURE, ContractStatus.CANCELLED, ContractAction.CANCEL, Role.LANDLORD),
    ContractTransition(ContractStatus.ACTIVE, ContractStatus.EXPIRED, ContractAction.EXPIRE, Role.SYSTEM),
)

ACTION_LABELS: dict[ContractAction, str] = {
    ContractAction.SEND_INVITE: "Send Invite",
    ContractAction.SIGN: "Sign Contract",
    ContractAction.CANCEL: "Cancel Contract",
    ContractAction.EXPIRE: "Mark Expired",
}

STATUS_BADGES: dict[ContractStatus, dict[str, str]] = {
    ContractStatus.DRAFT: {"label": "Draft", "variant": "secondary"},
    ContractStatus.PENDING_SIGNATURE: {"label": "Pending Signature", "variant": "outline"},
    ContractStatus.ACTIVE: {"label": "Active", "variant": "default"},
    ContractStatus.EXPIRED: {"label": "Expired", "variant": "secondary"},
    ContractStatus.CANCELLED: {"label": "Cancelled", "variant": "destructive"},
}


def parse_status(value: str | ContractStatus) -> ContractStatus:
    """Coerce a stored or user supplied status into :class:`ContractStatus`."""

    if isinstance(value, ContractStatus):
        return value
    raw = str(value).strip().lower()
    if raw in LEGACY_STATUS_ALIASES:
        return LEGACY_STATUS_ALIASES[raw]
    try:
        return ContractStatus(raw)
    except ValueError:
        raise ValueError(f"unknown contract status: {value!r}") from None


def transitions_from(
    status: ContractStatus,
    table: Sequence[ContractTransition] = CONTRACT_STATUS_TRANSITIONS,
) -> list[ContractTransition]:
    """Every row leaving ``status``, regardless of who may take it."""

    return [transition for transition in table if transition.from_status == status]


def permits(transition: ContractTransition, role: Role) -> bool:
    return transition.role == role


def available_actions(
    status: ContractStatus,
    role: Role,
    table: Sequence[ContractTransition] = CONTRACT_STATUS_TRANSITIONS,
) -> list[ContractTransition]:
    """Return the rows ``role`` may take from ``status`` in declaration order.

    An empty list means there is nothing to offer the caller; it is not an error.
    """

    return [transition for transition in transitions_from(status, table) if permits(transition, role)]


def apply_transition(
    status: ContractStatus,
    role: Role,
    action: ContractAction,
    table: Sequence[ContractTransition] = CONTRACT_STATUS_TRANSITIONS,
) -> ContractStatus:
    matches = [transition for transition in available_actions(status, role, table) if transition.action == action]
    if not matches:
        raise UnauthorizedTransition(status.value, role.value, action.value)

    targets = sorted({transition.to_status.value for transition in matches})
    if len(targets) > 1:
        raise AmbiguousTransition(status.value, role.value, action.value, targets)
    return matches[0].to_status


def find_conflicts(table: Iterable[ContractTransition]) -> list[tuple[str, str, str]]:
    targets: dict[tuple[str, str, str], set[ContractStatus]] = defaultdict(set)
    for transition in table:
        key = (transition.from_status.value, transition.role.value, transition.action.value)
        targets[key].add(transition.to_status)
    return [key for key, values in targets.items() if len(values) > 1]


def verify_transition_table(table: Iterable[ContractTransition] = CONTRACT_STATUS_TRANSITIONS) -> None:
    conflicts = find_conflicts(table)
    if conflicts:
        raise TransitionTableError(conflicts)


def terminal_statuses(table: Sequence[ContractTransition] = CONTRACT_STATUS_TRANSITIONS) -> set[ContractStatus]:
    """Statuses with no outgoing row for any role."""

    sources = {transition.from_status for transition in table}
    return {status for status in ContractStatus if status not in sources}


__all__ = [
    "ACTION_LABELS",
    "CONTRACT_STATUS_TRANSITIONS",
    "INITIAL_STATUS",
    "STATUS_BADGES",
    "ContractAction",
    "ContractStatus",
    "ContractTransition",
    "Role",
    "apply_transition",
    "available_actions",
    "find_conflicts",
    "parse_status",
    "permits",
    "terminal_statuses",
    "transitions_from",
    "verify_transition_table",
]
