from __future__ import annotations

from pathlib import Path

import pytest

from stakeledger.runtime.clock import ManualClock
from stakeledger.runtime.engine_boot import build_engine
from stakeledger.runtime.ledger_config import default_ledger_config, with_overrides
from stakeledger.runtime.ledger_seed import apply_seed, load_seed

SEED = """
balances:
  RWD:
    owner: 5000
  STK:
    alice: 1000
pools:
  - name: Staking pool
    key: STK
    apy: 5
    staking_token: STK
    reward_token: RWD
    validity_period: 172800
    reward_allowance: 2000
    start: true
  - name: Later pool
    key: LATER
    apy: 8
    staking_token: LATER
    reward_token: RWD
    validity_period: 86400
    reward_allowance: 1000
"""


def _write_seed(tmp_path: Path) -> str:
    p = tmp_path / "seed.yaml"
    p.write_text(SEED, encoding="utf-8")
    return str(p)


def test_load_seed_parses_yaml(tmp_path: Path) -> None:
    seed = load_seed(_write_seed(tmp_path))
    assert seed.balances == {"RWD": {"owner": 5000}, "STK": {"alice": 1000}}
    assert [p.key for p in seed.pools] == ["STK", "LATER"]
    assert seed.pools[0].start is True
    assert seed.pools[1].start is False


def test_load_seed_rejects_incomplete_pool(tmp_path: Path) -> None:
    p = tmp_path / "seed.json"
    p.write_text('{"pools": [{"key": "X"}]}', encoding="utf-8")
    with pytest.raises(ValueError):
        load_seed(str(p))


def test_boot_applies_seed(tmp_path: Path) -> None:
    cfg = with_overrides(default_ledger_config(), mode="test", db_path=":memory:", seed_path=_write_seed(tmp_path))
    eng = build_engine(cfg, clock=ManualClock(1_000))

    stk = eng.get_pool("STK")
    assert stk.started is True
    assert stk.validity_deadline == 1_000 + 172_800
    assert eng.get_pool("LATER").started is False

    gw = eng.gateway
    assert gw.balance_of("RWD", "owner") == 2000
    assert gw.balance_of("RWD", "stakeledger") == 3000

    gw.approve("STK", "alice", 1000)
    eng.stake("alice", "STK", 1000)
    assert eng.get_stake("alice", "STK").principal == 1000


def test_reseeding_skips_existing_pools(tmp_path: Path) -> None:
    cfg = with_overrides(default_ledger_config(), mode="test", db_path=":memory:", seed_path=_write_seed(tmp_path))
    eng = build_engine(cfg, clock=ManualClock(1_000))

    out = apply_seed(eng, load_seed(cfg.seed_path))
    assert out["pools_created"] == []
    assert out["pools_skipped"] == ["STK", "LATER"]
    assert len(eng.list_pools()) == 2
