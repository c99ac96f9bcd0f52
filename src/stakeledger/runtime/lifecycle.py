# src/stakeledger/runtime/lifecycle.py

from __future__ import annotations

"""Lifecycle gates.

Per pool there are three phases:

  configured  started=False, never started  (after add_pool)
  active      started=True                  (after start_staking)
  paused      started=False, started before (after pause_staking)

start_staking moves configured or paused pools to active. The first start turns
the stored validity duration into an absolute deadline; resuming a paused pool
keeps that deadline. pause_staking only accepts an active pool and blocks new
stakes until the pool is resumed. update_pool_apy and update_pool_tokens are
permitted whenever the pool is not active.

Globally there are three switches in state["lifecycle"]:

  claims_paused     gates claim_rewards (and unstake, which claims first)
  unstaking_paused  gates unstake
  staking_paused    reported but consulted by no gate

This module provides:
  - ensure_lifecycle: create the switch container with defaults
  - pool_phase / is_pool_open: classify a pool at a given time
  - deny_if_*: canonical gates used by the apply modules
"""

from typing import Any, Dict

from stakeledger.runtime.errors import StateError, ValidationError

Json = Dict[str, Any]

PHASE_CONFIGURED = "configured"
PHASE_ACTIVE = "active"
PHASE_PAUSED = "paused"

_SWITCHES = ("staking_paused", "claims_paused", "unstaking_paused")


def ensure_lifecycle(state: Json) -> Json:
    lc = state.get("lifecycle")
    if not isinstance(lc, dict):
        lc = {}
        state["lifecycle"] = lc
    for k in _SWITCHES:
        lc.setdefault(k, False)
    return lc


def lifecycle_status(state: Json) -> Json:
    lc = state.get("lifecycle") if isinstance(state.get("lifecycle"), dict) else {}
    return {k: bool(lc.get(k, False)) for k in _SWITCHES}


def set_switch(state: Json, name: str, value: bool) -> Json:
    if name not in _SWITCHES:
        raise ValidationError("invalid_input", "unknown_gate", {"gate": name, "allowed": list(_SWITCHES)})
    lc = ensure_lifecycle(state)
    lc[name] = bool(value)
    return lc


def has_started_before(pool: Json) -> bool:
    return bool(pool.get("deadline_fixed", False))


def pool_phase(pool: Json) -> str:
    if bool(pool.get("started", False)):
        return PHASE_ACTIVE
    return PHASE_PAUSED if has_started_before(pool) else PHASE_CONFIGURED


def is_pool_open(pool: Json, now: int) -> bool:
    """True when the pool accepts new stakes at `now`."""
    if pool_phase(pool) != PHASE_ACTIVE:
        return False
    return int(now) < int(pool.get("validity_deadline", 0) or 0)


def deny_if_started(pool: Json) -> None:
    """Admin configuration ops are refused while the pool is active."""
    if pool_phase(pool) == PHASE_ACTIVE:
        raise StateError("invalid_state", "staking_already_started", {"key": pool.get("key")})


def deny_if_not_started(pool: Json) -> None:
    if pool_phase(pool) != PHASE_ACTIVE:
        raise StateError("invalid_state", "staking_not_started", {"key": pool.get("key")})


def deny_if_pool_ended(pool: Json, now: int) -> None:
    deadline = int(pool.get("validity_deadline", 0) or 0)
    if int(now) >= deadline:
        raise StateError("invalid_state", "pool_ended", {"key": pool.get("key"), "deadline": deadline, "now": int(now)})


def deny_if_claims_paused(state: Json) -> None:
    if bool(ensure_lifecycle(state).get("claims_paused", False)):
        raise StateError("invalid_state", "claims_paused", {})


def deny_if_unstaking_paused(state: Json) -> None:
    if bool(ensure_lifecycle(state).get("unstaking_paused", False)):
        raise StateError("invalid_state", "unstaking_paused", {})
