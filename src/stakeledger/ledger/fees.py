from __future__ import annotations

from typing import Any, Dict, Tuple

from stakeledger.ledger.constants import FEE_DENOMINATOR, UNSTAKE_FEE

Json = Dict[str, Any]


def unstake_fee_amount(principal: int, unstake_fee: int = UNSTAKE_FEE) -> int:
    """Early-exit fee on principal, floored. Rewards are never charged."""
    p = int(principal)
    if p <= 0:
        return 0
    return p * int(unstake_fee) // FEE_DENOMINATOR


def fee_applies(pool: Json, now: int) -> bool:
    """Fee is charged strictly before the pool's validity deadline."""
    return int(now) < int(pool.get("validity_deadline", 0) or 0)


def split_principal(pool: Json, principal: int, now: int, unstake_fee: int = UNSTAKE_FEE) -> Tuple[int, int]:
    """Return (net_principal, fee) for an unstake at `now`."""
    fee = unstake_fee_amount(principal, unstake_fee) if fee_applies(pool, now) else 0
    return int(principal) - fee, fee
