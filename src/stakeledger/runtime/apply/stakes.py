# src/stakeledger/runtime/apply/stakes.py
from __future__ import annotations

"""
Stake ledger apply semantics.

Stake records live at state["stakes"][account][key]. A record is created on the
first stake and never deleted; unstake zeroes it instead.

Ordering rules:
  - reward is always accrued at the old principal before principal changes
  - unstake runs the full claim path first (so claim gates apply to it)
  - unstake transfers are emitted reward -> fee -> principal
"""

from typing import Any, Dict, List, Optional, Tuple

from stakeledger.ledger.accrual import accrue, project_rewards, reward_per_second
from stakeledger.ledger.fees import split_principal
from stakeledger.ledger.state import new_stake_record
from stakeledger.runtime.apply.common import (
    _as_int,
    _as_str,
    get_pool_record,
    require_positive,
    transfer_in,
    transfer_out,
)
from stakeledger.runtime.errors import StateError
from stakeledger.runtime.lifecycle import (
    deny_if_claims_paused,
    deny_if_not_started,
    deny_if_pool_ended,
    deny_if_unstaking_paused,
)

Json = Dict[str, Any]


def _ensure_stakes(state: Json) -> Json:
    stakes = state.get("stakes")
    if not isinstance(stakes, dict):
        stakes = {}
        state["stakes"] = stakes
    return stakes


def peek_stake(state: Json, account: str, key: str) -> Optional[Json]:
    by_pool = _ensure_stakes(state).get(account)
    if not isinstance(by_pool, dict):
        return None
    rec = by_pool.get(key)
    return rec if isinstance(rec, dict) else None


def _ensure_stake(state: Json, account: str, key: str) -> Json:
    stakes = _ensure_stakes(state)
    by_pool = stakes.get(account)
    if not isinstance(by_pool, dict):
        by_pool = {}
        stakes[account] = by_pool
    rec = by_pool.get(key)
    if not isinstance(rec, dict):
        rec = new_stake_record()
        by_pool[key] = rec
    for k, v in new_stake_record().items():
        rec.setdefault(k, v)
    return rec


def _require_staked(state: Json, account: str, key: str) -> Json:
    rec = peek_stake(state, account, key)
    if rec is None or _as_int(rec.get("principal"), 0) <= 0:
        raise StateError("invalid_state", "no_amount_staked", {"account": account, "key": key})
    return rec


def apply_stake(state: Json, *, caller: str, key: Any, amount: Any, now: int) -> Json:
    amt = require_positive(amount, "invalid_stake_amount")
    pool = get_pool_record(state, key)
    deny_if_not_started(pool)
    deny_if_pool_ended(pool, now)

    k = pool["key"]
    acct = _as_str(caller)
    rec = _ensure_stake(state, acct, k)

    accrued = 0
    if _as_int(rec.get("principal"), 0) > 0:
        accrued = accrue(rec, pool, now)

    rec["principal"] = _as_int(rec.get("principal"), 0) + amt
    rec["deposit_time"] = int(now)
    rec["last_accrual_time"] = int(now)
    pool["total_staked"] = _as_int(pool.get("total_staked"), 0) + amt

    return {
        "applied": "STAKE",
        "account": acct,
        "key": k,
        "amount": amt,
        "accrued": accrued,
        "principal": rec["principal"],
        "transfers": [transfer_in(pool["staking_token"], acct, amt)],
    }


def _claim(state: Json, *, caller: str, key: Any, now: int) -> Tuple[Json, Json, int, List[Json]]:
    deny_if_claims_paused(state)
    pool = get_pool_record(state, key)
    acct = _as_str(caller)
    rec = _require_staked(state, acct, pool["key"])

    accrue(rec, pool, now)
    reward = _as_int(rec.get("accrued_reward"), 0)

    rec["accrued_reward"] = 0
    rec["last_claim"] = reward
    rec["claimed_total"] = _as_int(rec.get("claimed_total"), 0) + reward
    pool["reward_paid"] = _as_int(pool.get("reward_paid"), 0) + reward

    transfers: List[Json] = []
    if reward > 0:
        transfers.append(transfer_out(pool["reward_token"], acct, reward))
    return pool, rec, reward, transfers


def apply_claim_rewards(state: Json, *, caller: str, key: Any, now: int) -> Json:
    pool, rec, reward, transfers = _claim(state, caller=caller, key=key, now=now)
    return {
        "applied": "CLAIM_REWARDS",
        "account": _as_str(caller),
        "key": pool["key"],
        "reward": reward,
        "claimed_total": rec["claimed_total"],
        "transfers": transfers,
    }


def apply_unstake(state: Json, *, caller: str, key: Any, now: int) -> Json:
    deny_if_unstaking_paused(state)
    pool, rec, reward, transfers = _claim(state, caller=caller, key=key, now=now)

    params = state.get("params") if isinstance(state.get("params"), dict) else {}
    fee_wallet = _as_str(params.get("fee_wallet"))
    unstake_fee = _as_int(params.get("unstake_fee"), 0)

    acct = _as_str(caller)
    principal = _as_int(rec.get("principal"), 0)
    net, fee = split_principal(pool, principal, now, unstake_fee)

    if fee > 0:
        if fee_wallet:
            transfers.append(transfer_out(pool["staking_token"], fee_wallet, fee))
            pool["fees_collected"] = _as_int(pool.get("fees_collected"), 0) + fee
        else:
            # No fee wallet: the fee stays in custody.
            pool["fees_withheld"] = _as_int(pool.get("fees_withheld"), 0) + fee
    if net > 0:
        transfers.append(transfer_out(pool["staking_token"], acct, net))

    rec["principal"] = 0
    rec["accrued_reward"] = 0
    rec["last_accrual_time"] = int(now)
    pool["total_staked"] = max(0, _as_int(pool.get("total_staked"), 0) - principal)

    return {
        "applied": "UNSTAKE",
        "account": acct,
        "key": pool["key"],
        "principal": principal,
        "reward": reward,
        "fee": fee,
        "net": net,
        "fee_wallet": fee_wallet or None,
        "transfers": transfers,
    }


def calculate_reward_per_second(state: Json, *, account: str, key: Any) -> int:
    pool = get_pool_record(state, key)
    rec = peek_stake(state, _as_str(account), pool["key"]) or {}
    return reward_per_second(_as_int(rec.get("principal"), 0), _as_int(pool.get("apy"), 0))


def view_rewards(state: Json, *, account: str, key: Any, now: int) -> int:
    """Pending reward as of `now`. Never mutates state."""
    pool = get_pool_record(state, key)
    rec = peek_stake(state, _as_str(account), pool["key"])
    if rec is None:
        return 0
    return project_rewards(rec, pool, now)
