# src/stakeledger/runtime/apply/pools.py
from __future__ import annotations

"""
Pool registry apply semantics.

Pools are keyed by staking-token identifier. A key is registered exactly once
and never removed. Configuration (APY, token references) is editable only while
the pool is not active (see runtime.lifecycle). Token references are frozen
once a pool holds stakes.
"""

from typing import Any, Dict, Optional

from stakeledger.ledger.state import new_pool_record
from stakeledger.runtime.apply.common import (
    _as_int,
    ensure_pools,
    get_pool_record,
    require_positive,
    require_str,
    transfer_in,
)
from stakeledger.runtime.errors import StateError
from stakeledger.runtime.lifecycle import deny_if_not_started, deny_if_started, has_started_before

Json = Dict[str, Any]


def apply_add_pool(
    state: Json,
    *,
    caller: str,
    name: Any,
    key: Any,
    apy: Any,
    staking_token: Any,
    reward_token: Any,
    validity_period: Any,
    reward_allowance: Any,
    now: int,
) -> Json:
    k = require_str(key, "invalid_pool_key")
    pools = ensure_pools(state)
    existing = pools.get(k)
    if isinstance(existing, dict) and existing.get("exists"):
        raise StateError("conflict", "pool_already_exists", {"key": k})

    apy_i = require_positive(apy, "invalid_stake_apy")
    allowance = require_positive(reward_allowance, "invalid_allowance")
    nm = require_str(name, "invalid_pool_name")
    st_tok = require_str(staking_token, "invalid_token")
    rw_tok = require_str(reward_token, "invalid_token")
    period = require_positive(validity_period, "invalid_validity_period")

    rec = new_pool_record(
        name=nm,
        key=k,
        apy=apy_i,
        staking_token=st_tok,
        reward_token=rw_tok,
        validity_period=period,
        created_at=int(now),
    )
    rec["reward_funded"] = allowance
    pools[k] = rec

    return {
        "applied": "ADD_POOL",
        "key": k,
        "apy": apy_i,
        "reward_allowance": allowance,
        "transfers": [transfer_in(rw_tok, caller, allowance)],
    }


def apply_start_staking(state: Json, *, key: Any, now: int) -> Json:
    pool = get_pool_record(state, key)
    deny_if_started(pool)

    resumed = has_started_before(pool)
    if not resumed:
        # First start: the stored duration becomes an absolute deadline.
        duration = _as_int(pool.get("validity_deadline"), 0)
        pool["staking_start_time"] = int(now)
        pool["validity_deadline"] = duration + int(now)
        pool["deadline_fixed"] = True
    pool["started"] = True

    return {
        "applied": "START_STAKING",
        "key": pool["key"],
        "resumed": resumed,
        "staking_start_time": _as_int(pool.get("staking_start_time"), 0),
        "validity_deadline": pool["validity_deadline"],
    }


def apply_pause_staking(state: Json, *, key: Any) -> Json:
    pool = get_pool_record(state, key)
    deny_if_not_started(pool)
    pool["started"] = False
    return {"applied": "PAUSE_STAKING", "key": pool["key"], "started": False}


def apply_update_pool_apy(state: Json, *, key: Any, new_apy: Any) -> Json:
    pool = get_pool_record(state, key)
    deny_if_started(pool)
    apy_i = require_positive(new_apy, "invalid_stake_apy")
    old = _as_int(pool.get("apy"), 0)
    pool["apy"] = apy_i
    return {"applied": "UPDATE_POOL_APY", "key": pool["key"], "old_apy": old, "apy": apy_i}


def apply_update_pool_tokens(
    state: Json,
    *,
    key: Any,
    staking_token: Optional[Any] = None,
    reward_token: Optional[Any] = None,
) -> Json:
    pool = get_pool_record(state, key)
    deny_if_started(pool)
    staked = _as_int(pool.get("total_staked"), 0)
    if staked > 0:
        raise StateError("invalid_state", "pool_has_stakes", {"key": pool["key"], "total_staked": staked})

    changed: Json = {}
    if staking_token is not None:
        pool["staking_token"] = require_str(staking_token, "invalid_token")
        changed["staking_token"] = pool["staking_token"]
    if reward_token is not None:
        pool["reward_token"] = require_str(reward_token, "invalid_token")
        changed["reward_token"] = pool["reward_token"]

    return {"applied": "UPDATE_POOL_TOKENS", "key": pool["key"], "changed": changed}
