from __future__ import annotations


class RentflowError(Exception):
    """Base class for domain errors surfaced to API callers."""


class UnauthorizedTransition(RentflowError):
    """No transition row matches the requested status, role and action."""

    def __init__(self, status: str, role: str, action: str) -> None:
        super().__init__(f"{role} may not {action} a contract in status {status}")
        self.status = status
        self.role = role
        self.action = action


class AmbiguousTransition(RentflowError):
    """More than one transition row matches with different targets."""

    def __init__(self, status: str, role: str, action: str, targets: list[str]) -> None:
        super().__init__(
            f"transition table maps ({status}, {role}, {action}) to several statuses: {', '.join(targets)}"
        )
        self.targets = targets


class TransitionTableError(RentflowError):
    """Raised when the static transition table fails its integrity check."""

    def __init__(self, conflicts: list[tuple[str, str, str]]) -> None:
        rendered = "; ".join(f"({s}, {r}, {a})" for s, r, a in conflicts)
        super().__init__(f"conflicting transition rows: {rendered}")
        self.conflicts = conflicts


class ContractNotFound(RentflowError):
    pass


class UnknownProvider(RentflowError):
    """Raised when a scrape is requested for a provider with no selector config."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"unsupported provider: {provider}")
        self.provider = provider


class InvalidJobTransition(RentflowError):
    """Raised when a scrape job is moved out of a state it cannot leave."""

    def __init__(self, job_id: str, current: str, requested: str) -> None:
        super().__init__(f"job {job_id} cannot move from {current} to {requested}")
        self.job_id = job_id
        self.current = current
        self.requested = requested


class JobNotFound(RentflowError):
    pass
