from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class StakingError(Exception):
    """Canonical error type for ledger operations.

    `code` is the coarse category (invalid_input, invalid_state, not_found, conflict,
    forbidden, transfer_failed); `reason` is the stable identifier callers branch on.
    """

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


@dataclass
class ValidationError(StakingError):
    """Zero/negative amounts, APY, allowance or malformed parameters."""


@dataclass
class StateError(StakingError):
    """Operation not permitted by the current ledger state (phase, gates, missing or duplicate pool)."""


@dataclass
class AuthorizationError(StakingError):
    """Caller lacks the owner authority for an admin-only operation."""


@dataclass
class ExternalTransferError(StakingError):
    """Token movement gateway reported a failure."""


# Declared for interface compatibility; no operation raises it.
ALREADY_STAKED = "already_staked"
