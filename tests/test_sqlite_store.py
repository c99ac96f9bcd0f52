from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from stakeledger.runtime.authority import OwnerAuthority
from stakeledger.runtime.clock import ManualClock
from stakeledger.runtime.engine import EngineError, StakingEngine
from stakeledger.runtime.gateway import InMemoryTokenGateway
from stakeledger.runtime.sqlite_db import SqliteDB, SqliteLedgerStore


def _pragma(con: sqlite3.Connection, name: str) -> int | str:
    row = con.execute(f"PRAGMA {name};").fetchone()
    if row is None:
        raise AssertionError(f"missing pragma: {name}")
    return row[0]


def test_sqlite_operational_pragmas_are_applied(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STAKELEDGER_MODE", "prod")
    monkeypatch.delenv("STAKELEDGER_SQLITE_SYNCHRONOUS", raising=False)
    monkeypatch.setenv("STAKELEDGER_SQLITE_BUSY_TIMEOUT_MS", "1234")

    db = SqliteDB(path=str(tmp_path / "ledger.db"))
    db.init_schema()

    with db.connection() as con:
        assert str(_pragma(con, "journal_mode")).lower() == "wal"
        # FULL is the prod default.
        assert int(_pragma(con, "synchronous")) == 2
        assert int(_pragma(con, "busy_timeout")) == 1234


def test_store_update_rolls_back_on_exception(tmp_path: Path) -> None:
    store = SqliteLedgerStore(db=SqliteDB(path=str(tmp_path / "ledger.db")))
    store.write({"pools": {}, "time": 1})

    def _boom(st):
        st["pools"]["X"] = {"exists": True}
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        store.update(_boom)
    assert store.read() == {"pools": {}, "time": 1}

    out = store.update(lambda st: st.__setitem__("time", 2) or "done")
    assert out == "done"
    assert store.read()["time"] == 2


def test_read_missing_snapshot(tmp_path: Path) -> None:
    store = SqliteLedgerStore(db=SqliteDB(path=str(tmp_path / "ledger.db")))
    assert store.exists() is False
    with pytest.raises(FileNotFoundError):
        store.read()


def _engine(path: str, clock: ManualClock, gw: InMemoryTokenGateway, owner: str = "owner") -> StakingEngine:
    return StakingEngine(
        store=SqliteLedgerStore(db=SqliteDB(path=path)),
        clock=clock,
        gateway=gw,
        authority=OwnerAuthority(owner),
    )


def test_state_survives_engine_restart(tmp_path: Path) -> None:
    path = str(tmp_path / "ledger.db")
    clock = ManualClock(1_000)
    gw = InMemoryTokenGateway()
    gw.mint("RWD", "owner", 10**6)
    gw.approve("RWD", "owner", 10**6)
    gw.mint("STK", "alice", 10**30)
    gw.approve("STK", "alice", 10**30)

    eng = _engine(path, clock, gw)
    eng.add_pool(
        "owner",
        name="stk",
        key="STK",
        apy=5,
        staking_token="STK",
        reward_token="RWD",
        validity_period=100,
        reward_allowance=10**6,
    )
    eng.start_staking("owner", "STK")
    eng.set_fee_wallet("owner", "treasury")
    eng.pause_unstaking("owner")
    eng.stake("alice", "STK", 10**27)
    del eng

    clock.advance(10)
    eng2 = _engine(path, clock, gw)
    pool = eng2.get_pool("STK")
    assert pool.started is True
    assert pool.validity_deadline == 1_100
    assert eng2.get_stake("alice", "STK").principal == 10**27
    assert eng2.lifecycle_status()["unstaking_paused"] is True
    # Runtime fee wallet survives a restart.
    assert eng2.fee_wallet() == "treasury"
    assert eng2.view_rewards("alice", "STK") == eng2.calculate_reward_per_second("alice", "STK") * 10


def test_restart_with_different_owner_refuses(tmp_path: Path) -> None:
    path = str(tmp_path / "ledger.db")
    _engine(path, ManualClock(0), InMemoryTokenGateway())
    with pytest.raises(EngineError):
        _engine(path, ManualClock(0), InMemoryTokenGateway(), owner="someone-else")


def test_failed_commit_rolls_back_gateway_moves(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    gw = InMemoryTokenGateway()
    gw.mint("RWD", "owner", 10**21)
    gw.approve("RWD", "owner", 10**21)
    eng = _engine(str(tmp_path / "ledger.db"), ManualClock(1_000), gw)

    def _disk_full(obj):
        raise sqlite3.OperationalError("database or disk is full")

    monkeypatch.setattr("stakeledger.runtime.sqlite_db.canon_json", _disk_full)
    with pytest.raises(sqlite3.OperationalError):
        eng.add_pool(
            "owner",
            name="stk",
            key="STK",
            apy=5,
            staking_token="STK",
            reward_token="RWD",
            validity_period=100,
            reward_allowance=10**21,
        )
    monkeypatch.undo()

    assert eng.list_pools() == []
    assert gw.balance_of("RWD", "owner") == 10**21
    assert gw.balance_of("RWD", "stakeledger") == 0
    assert gw.allowance("RWD", "owner") == 10**21
