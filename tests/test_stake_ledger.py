from __future__ import annotations

import pytest

from stakeledger.ledger.accrual import reward_per_second
from stakeledger.runtime.errors import StateError, ValidationError

P = 500 * 10**18


def test_stake_before_start_fails_not_started(engine, make_pool) -> None:
    make_pool()
    for who in ("alice", "owner"):
        with pytest.raises(StateError) as ei:
            engine.stake(who, "STK", P)
        assert ei.value.reason == "staking_not_started"


def test_stake_after_deadline_fails_pool_ended(engine, clock, started_pool) -> None:
    deadline = engine.get_pool(started_pool).validity_deadline
    clock.set(deadline)
    for who in ("alice", "bob"):
        with pytest.raises(StateError) as ei:
            engine.stake(who, started_pool, P)
        assert ei.value.reason == "pool_ended"


@pytest.mark.parametrize("amount", [0, -1])
def test_stake_rejects_non_positive_amount(engine, started_pool, amount) -> None:
    with pytest.raises(ValidationError) as ei:
        engine.stake("alice", started_pool, amount)
    assert ei.value.reason == "invalid_stake_amount"


def test_stake_unknown_pool(engine) -> None:
    with pytest.raises(StateError) as ei:
        engine.stake("alice", "NOPE", P)
    assert ei.value.reason == "pool_not_exists"


def test_stake_moves_principal_into_custody(engine, gateway, started_pool) -> None:
    before = gateway.balance_of("STK", "alice")
    engine.stake("alice", started_pool, P)

    assert gateway.balance_of("STK", "alice") == before - P
    assert gateway.balance_of("STK", "stakeledger") == P
    assert engine.get_pool(started_pool).total_staked == P


def test_get_stake_defaults_to_zero_record(engine, started_pool) -> None:
    sv = engine.get_stake("nobody", started_pool)
    assert sv.is_empty
    assert sv.principal == 0 and sv.claimed_total == 0


def test_claim_without_stake_fails(engine, started_pool) -> None:
    with pytest.raises(StateError) as ei:
        engine.claim_rewards("alice", started_pool)
    assert ei.value.reason == "no_amount_staked"


def test_claim_pays_accrued_reward_and_resets(engine, clock, gateway, started_pool) -> None:
    engine.stake("alice", started_pool, P)
    clock.advance(86_400)
    expected = reward_per_second(P, 5) * 86_400

    r = engine.claim_rewards("alice", started_pool)
    assert r["reward"] == expected
    assert gateway.balance_of("RWD", "alice") == expected

    sv = engine.get_stake("alice", started_pool)
    assert sv.accrued_reward == 0
    assert sv.last_claim == expected
    assert sv.claimed_total == expected
    assert sv.principal == P
    assert engine.get_pool(started_pool).reward_paid == expected

    # Immediate second claim pays nothing and moves no tokens.
    r2 = engine.claim_rewards("alice", started_pool)
    assert r2["reward"] == 0
    assert r2["transfers"] == []
    assert gateway.balance_of("RWD", "alice") == expected


def test_claims_allowed_after_deadline(engine, clock, started_pool) -> None:
    engine.stake("alice", started_pool, P)
    clock.set(engine.get_pool(started_pool).validity_deadline + 10)
    assert engine.claim_rewards("alice", started_pool)["reward"] > 0


def test_unstake_returns_principal_and_zeroes_record(engine, clock, gateway, started_pool) -> None:
    start_bal = gateway.balance_of("STK", "alice")
    engine.stake("alice", started_pool, P)
    clock.set(engine.get_pool(started_pool).validity_deadline)

    r = engine.unstake("alice", started_pool)
    assert r["fee"] == 0
    assert r["net"] == P
    assert gateway.balance_of("STK", "alice") == start_bal
    assert gateway.balance_of("RWD", "alice") == r["reward"]

    sv = engine.get_stake("alice", started_pool)
    assert sv.principal == 0 and sv.accrued_reward == 0
    assert engine.get_pool(started_pool).total_staked == 0

    with pytest.raises(StateError) as ei:
        engine.unstake("alice", started_pool)
    assert ei.value.reason == "no_amount_staked"


def test_accounts_are_isolated(engine, clock, started_pool) -> None:
    engine.stake("alice", started_pool, P)
    clock.advance(100)
    engine.stake("bob", started_pool, P // 2)
    clock.advance(100)

    assert engine.view_rewards("alice", started_pool) == reward_per_second(P, 5) * 200
    assert engine.view_rewards("bob", started_pool) == reward_per_second(P // 2, 5) * 100
    assert engine.get_pool(started_pool).total_staked == P + P // 2
