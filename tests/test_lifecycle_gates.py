from __future__ import annotations

import pytest

from stakeledger.runtime.apply.admin import apply_set_gate
from stakeledger.runtime.errors import AuthorizationError, StateError, ValidationError
from stakeledger.runtime.lifecycle import lifecycle_status, set_switch
from stakeledger.runtime.state_invariants import ensure_state

P = 10**20


def test_lifecycle_defaults(engine) -> None:
    assert engine.lifecycle_status() == {
        "staking_paused": False,
        "claims_paused": False,
        "unstaking_paused": False,
    }


def test_pause_claims_blocks_claim_and_unstake(engine, started_pool) -> None:
    engine.stake("alice", started_pool, P)
    engine.pause_claims("owner")
    assert engine.lifecycle_status()["claims_paused"] is True

    with pytest.raises(StateError) as ei:
        engine.claim_rewards("alice", started_pool)
    assert ei.value.reason == "claims_paused"

    # unstake claims first, so the claim gate applies to it as well
    with pytest.raises(StateError) as ei:
        engine.unstake("alice", started_pool)
    assert ei.value.reason == "claims_paused"

    # staking is not gated by claims
    engine.stake("bob", started_pool, P)

    engine.start_claims("owner")
    engine.claim_rewards("alice", started_pool)


def test_pause_unstaking_is_checked_before_claim_gates(engine, started_pool) -> None:
    engine.pause_unstaking("owner")
    engine.pause_claims("owner")
    with pytest.raises(StateError) as ei:
        engine.unstake("alice", started_pool)
    assert ei.value.reason == "unstaking_paused"

    engine.start_unstaking("owner")
    engine.start_claims("owner")
    engine.stake("alice", started_pool, P)
    engine.unstake("alice", started_pool)


def test_gates_are_global_across_pools(engine, make_pool) -> None:
    make_pool(key="AAA")
    make_pool(key="BBB")
    engine.start_staking("owner", "AAA")
    engine.start_staking("owner", "BBB")
    engine.pause_claims("owner")
    for key in ("AAA", "BBB"):
        with pytest.raises(StateError):
            engine.claim_rewards("alice", key)


def test_gate_toggles_require_owner(engine) -> None:
    for fn in (engine.pause_claims, engine.start_claims, engine.pause_unstaking, engine.start_unstaking):
        with pytest.raises(AuthorizationError):
            fn("alice")
    assert engine.lifecycle_status()["claims_paused"] is False


def test_staking_paused_flag_is_inert(engine, started_pool) -> None:
    st = engine.read_state()
    assert st["lifecycle"]["staking_paused"] is False
    # No public op sets it and no gate reads it: staking proceeds.
    engine.stake("alice", started_pool, P)


def test_unknown_gate_is_a_validation_error() -> None:
    st = ensure_state({})
    with pytest.raises(ValidationError) as ei:
        apply_set_gate(st, gate="withdrawals", paused=True)
    assert ei.value.code == "invalid_input"
    assert ei.value.reason == "unknown_gate"

    with pytest.raises(ValidationError) as ei:
        set_switch(st, "bogus_paused", True)
    assert ei.value.reason == "unknown_gate"
    assert lifecycle_status(st) == {"staking_paused": False, "claims_paused": False, "unstaking_paused": False}
