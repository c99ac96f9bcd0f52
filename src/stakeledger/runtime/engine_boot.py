# src/stakeledger/runtime/engine_boot.py

from __future__ import annotations

from typing import Optional

from stakeledger.runtime.authority import OwnerAuthority
from stakeledger.runtime.clock import Clock, SystemClock
from stakeledger.runtime.engine import StakingEngine
from stakeledger.runtime.gateway import InMemoryTokenGateway, TokenMovementGateway
from stakeledger.runtime.ledger_config import LedgerConfig, load_ledger_config
from stakeledger.runtime.ledger_seed import apply_seed, load_seed
from stakeledger.runtime.memory_store import MemoryLedgerStore
from stakeledger.runtime.sqlite_db import SqliteDB, SqliteLedgerStore


def build_store(cfg: LedgerConfig):
    if cfg.in_memory:
        return MemoryLedgerStore()
    return SqliteLedgerStore(db=SqliteDB(path=cfg.db_path))


def build_engine(
    cfg: Optional[LedgerConfig] = None,
    *,
    clock: Optional[Clock] = None,
    gateway: Optional[TokenMovementGateway] = None,
) -> StakingEngine:
    """
    Build a StakingEngine from an explicit config or, if omitted, from
    load_ledger_config() (file + environment).

    `stakeledger.api.app` calls this with no args in production. Tests inject a
    ManualClock and their own gateway.
    """
    c = cfg or load_ledger_config()
    gw = gateway if gateway is not None else InMemoryTokenGateway(custody=c.custody_account)

    engine = StakingEngine(
        store=build_store(c),
        clock=clock or SystemClock(),
        gateway=gw,
        authority=OwnerAuthority(c.owner),
        unstake_fee=c.unstake_fee,
        fee_wallet=c.fee_wallet,
    )

    if c.seed_path:
        apply_seed(engine, load_seed(c.seed_path))

    return engine
