# src/stakeledger/runtime/ledger_seed.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

from stakeledger.runtime.engine import StakingEngine
from stakeledger.runtime.gateway import InMemoryTokenGateway
from stakeledger.runtime.ledger_logging import log_event

Json = Dict[str, Any]

log = logging.getLogger("stakeledger.seed")


@dataclass(frozen=True, slots=True)
class SeedPool:
    name: str
    key: str
    apy: int
    staking_token: str
    reward_token: str
    validity_period: int
    reward_allowance: int
    start: bool = False


@dataclass(frozen=True, slots=True)
class LedgerSeed:
    # token -> account -> amount
    balances: Dict[str, Dict[str, int]] = field(default_factory=dict)
    pools: List[SeedPool] = field(default_factory=list)


def _pool_from_mapping(rec: Json) -> SeedPool:
    missing = [k for k in ("name", "key", "apy", "staking_token", "reward_token", "validity_period", "reward_allowance") if k not in rec]
    if missing:
        raise ValueError(f"seed pool is missing fields: {missing}")
    return SeedPool(
        name=str(rec["name"]),
        key=str(rec["key"]),
        apy=int(rec["apy"]),
        staking_token=str(rec["staking_token"]),
        reward_token=str(rec["reward_token"]),
        validity_period=int(rec["validity_period"]),
        reward_allowance=int(rec["reward_allowance"]),
        start=bool(rec.get("start", False)),
    )


def load_seed(path: str) -> LedgerSeed:
    """Load a dev/test seed from YAML or JSON.

    Shape:
      {"balances": {token: {account: amount}},
       "pools": [{name, key, apy, staking_token, reward_token, validity_period, reward_allowance, start}]}
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(str(p))

    obj = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(obj, dict):
        raise ValueError("seed file must be a mapping")

    balances: Dict[str, Dict[str, int]] = {}
    raw_bal = obj.get("balances") or {}
    if not isinstance(raw_bal, dict):
        raise ValueError("seed balances must be a mapping of token -> account -> amount")
    for token, by_acct in raw_bal.items():
        if not isinstance(by_acct, dict):
            raise ValueError(f"seed balances for {token!r} must be a mapping")
        balances[str(token)] = {str(a): int(v) for a, v in by_acct.items()}

    raw_pools = obj.get("pools") or []
    if not isinstance(raw_pools, list):
        raise ValueError("seed pools must be a list")
    pools = [_pool_from_mapping(r) for r in raw_pools if isinstance(r, dict)]

    return LedgerSeed(balances=balances, pools=pools)


def apply_seed(engine: StakingEngine, seed: LedgerSeed) -> Json:
    """Fund the in-memory gateway and create seed pools as the owner.

    Pools whose key is already in the ledger are skipped, so re-running the
    seed against a persisted store is harmless.
    """
    gw = engine.gateway
    if not isinstance(gw, InMemoryTokenGateway):
        raise TypeError("seeding requires the in-memory token gateway")

    minted = 0
    for token, by_acct in seed.balances.items():
        for acct, amount in by_acct.items():
            if amount > 0:
                gw.mint(token, acct, amount)
                minted += 1

    existing = {p.key for p in engine.list_pools()}
    created: List[str] = []
    skipped: List[str] = []
    for sp in seed.pools:
        if sp.key in existing:
            skipped.append(sp.key)
            continue
        gw.approve(sp.reward_token, engine.owner, gw.allowance(sp.reward_token, engine.owner) + sp.reward_allowance)
        engine.add_pool(
            engine.owner,
            name=sp.name,
            key=sp.key,
            apy=sp.apy,
            staking_token=sp.staking_token,
            reward_token=sp.reward_token,
            validity_period=sp.validity_period,
            reward_allowance=sp.reward_allowance,
        )
        if sp.start:
            engine.start_staking(engine.owner, sp.key)
        created.append(sp.key)

    out: Json = {"balances_minted": minted, "pools_created": created, "pools_skipped": skipped}
    log_event(log, "seed_applied", **out)
    return out
