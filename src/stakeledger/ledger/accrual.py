# src/stakeledger/ledger/accrual.py
from __future__ import annotations

"""Continuous reward accrual.

Reward is not epoch based: every second of principal earns

    rate = principal * apy // APY_DENOMINATOR // SECONDS_PER_YEAR

The floor divisions are applied on every invocation, so many short accrual
intervals sum to less than one long interval over the same span. That drift is
part of the ledger's observable behaviour and is reproduced here on purpose.
"""

from typing import Any, Dict

from stakeledger.ledger.constants import APY_DENOMINATOR, SECONDS_PER_YEAR
from stakeledger.runtime.errors import StateError

Json = Dict[str, Any]


def _as_int(x: Any, default: int = 0) -> int:
    try:
        return int(x)
    except Exception:
        return default


def reward_per_second(principal: int, apy: int, seconds_per_year: int = SECONDS_PER_YEAR) -> int:
    """Per-second reward for `principal` at `apy`, floored at each division."""
    p = int(principal)
    if p <= 0:
        return 0
    return (p * int(apy) // APY_DENOMINATOR) // int(seconds_per_year)


def _elapsed(stake: Json, now: int) -> int:
    last = _as_int(stake.get("last_accrual_time"), 0)
    n = int(now)
    if n < last:
        raise StateError("invalid_state", "clock_regressed", {"now": n, "last_accrual_time": last})
    return n - last


def reward_delta(stake: Json, pool: Json, now: int) -> int:
    rate = reward_per_second(_as_int(stake.get("principal"), 0), _as_int(pool.get("apy"), 0))
    return rate * _elapsed(stake, now)


def accrue(stake: Json, pool: Json, now: int) -> int:
    """Persist reward earned since the last accrual point into `stake`.

    Returns the delta added.
    """
    delta = reward_delta(stake, pool, now)
    stake["accrued_reward"] = _as_int(stake.get("accrued_reward"), 0) + delta
    stake["last_accrual_time"] = int(now)
    return delta


def project_rewards(stake: Json, pool: Json, now: int) -> int:
    """Same as accrue() but without touching the record."""
    return _as_int(stake.get("accrued_reward"), 0) + reward_delta(stake, pool, now)
