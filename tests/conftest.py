from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "stakeledger" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from stakeledger.runtime.authority import OwnerAuthority  # noqa: E402
from stakeledger.runtime.clock import ManualClock  # noqa: E402
from stakeledger.runtime.engine import StakingEngine  # noqa: E402
from stakeledger.runtime.gateway import InMemoryTokenGateway  # noqa: E402
from stakeledger.runtime.memory_store import MemoryLedgerStore  # noqa: E402

OWNER = "owner"
ALICE = "alice"
BOB = "bob"
STK = "STK"
RWD = "RWD"
T0 = 1_700_000_000
DAY = 86_400


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture
def gateway() -> InMemoryTokenGateway:
    gw = InMemoryTokenGateway()
    gw.mint(RWD, OWNER, 10**24)
    gw.approve(RWD, OWNER, 10**24)
    for acct in (ALICE, BOB):
        gw.mint(STK, acct, 10**24)
        gw.approve(STK, acct, 10**24)
    return gw


@pytest.fixture
def engine(clock: ManualClock, gateway: InMemoryTokenGateway) -> StakingEngine:
    return StakingEngine(
        store=MemoryLedgerStore(),
        clock=clock,
        gateway=gateway,
        authority=OwnerAuthority(OWNER),
    )


@pytest.fixture
def make_pool(engine: StakingEngine):
    def _make(*, key: str = STK, apy: int = 5, validity: int = 2 * DAY, allowance: int = 10**21):
        return engine.add_pool(
            OWNER,
            name=f"{key} pool",
            key=key,
            apy=apy,
            staking_token=key,
            reward_token=RWD,
            validity_period=validity,
            reward_allowance=allowance,
        )

    return _make


@pytest.fixture
def started_pool(engine: StakingEngine, make_pool) -> str:
    make_pool()
    engine.start_staking(OWNER, STK)
    return STK
