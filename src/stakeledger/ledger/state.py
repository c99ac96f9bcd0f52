from __future__ import annotations

from dataclasses import asdict, dataclass, field
import copy
from typing import Any, Dict, List, Optional


Json = Dict[str, Any]


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def new_pool_record(
    *,
    name: str,
    key: str,
    apy: int,
    staking_token: str,
    reward_token: str,
    validity_period: int,
    created_at: int,
) -> Json:
    """
    Fresh pool record as persisted under state["pools"][key].

    `validity_deadline` holds the validity *duration* until the pool is first
    started, at which point start_staking rewrites it to the absolute deadline
    and sets `deadline_fixed`.
    """
    return {
        "name": str(name),
        "key": str(key),
        "apy": int(apy),
        "staking_token": str(staking_token),
        "reward_token": str(reward_token),
        "staking_start_time": 0,
        "validity_period": int(validity_period),
        "validity_deadline": int(validity_period),
        "started": False,
        "deadline_fixed": False,
        "exists": True,
        "total_staked": 0,
        "reward_funded": 0,
        "reward_paid": 0,
        "fees_collected": 0,
        "fees_withheld": 0,
        "created_at": int(created_at),
    }


def new_stake_record() -> Json:
    return {
        "principal": 0,
        "deposit_time": 0,
        "last_accrual_time": 0,
        "accrued_reward": 0,
        "claimed_total": 0,
        "last_claim": 0,
    }


@dataclass(frozen=True, slots=True)
class PoolView:
    name: str
    key: str
    apy: int
    staking_token: str
    reward_token: str
    staking_start_time: int
    validity_period: int
    validity_deadline: int
    started: bool
    exists: bool
    deadline_fixed: bool = False
    total_staked: int = 0
    reward_funded: int = 0
    reward_paid: int = 0
    fees_collected: int = 0
    fees_withheld: int = 0
    created_at: int = 0

    @classmethod
    def from_record(cls, rec: Json) -> "PoolView":
        return cls(
            name=str(rec.get("name", "")),
            key=str(rec.get("key", "")),
            apy=_as_int(rec.get("apy")),
            staking_token=str(rec.get("staking_token", "")),
            reward_token=str(rec.get("reward_token", "")),
            staking_start_time=_as_int(rec.get("staking_start_time")),
            validity_period=_as_int(rec.get("validity_period")),
            validity_deadline=_as_int(rec.get("validity_deadline")),
            started=bool(rec.get("started", False)),
            exists=bool(rec.get("exists", False)),
            deadline_fixed=bool(rec.get("deadline_fixed", False)),
            total_staked=_as_int(rec.get("total_staked")),
            reward_funded=_as_int(rec.get("reward_funded")),
            reward_paid=_as_int(rec.get("reward_paid")),
            fees_collected=_as_int(rec.get("fees_collected")),
            fees_withheld=_as_int(rec.get("fees_withheld")),
            created_at=_as_int(rec.get("created_at")),
        )

    def to_dict(self) -> Json:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class StakeView:
    account: str
    key: str
    principal: int = 0
    deposit_time: int = 0
    last_accrual_time: int = 0
    accrued_reward: int = 0
    claimed_total: int = 0
    last_claim: int = 0

    @classmethod
    def from_record(cls, account: str, key: str, rec: Optional[Json]) -> "StakeView":
        r = rec if isinstance(rec, dict) else {}
        return cls(
            account=str(account),
            key=str(key),
            principal=_as_int(r.get("principal")),
            deposit_time=_as_int(r.get("deposit_time")),
            last_accrual_time=_as_int(r.get("last_accrual_time")),
            accrued_reward=_as_int(r.get("accrued_reward")),
            claimed_total=_as_int(r.get("claimed_total")),
            last_claim=_as_int(r.get("last_claim")),
        )

    @property
    def is_empty(self) -> bool:
        """A zero record with nothing pending is logically absent."""
        return self.principal == 0 and self.accrued_reward == 0

    def to_dict(self) -> Json:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class LedgerView:
    """
    Immutable read-only view over a ledger snapshot.
    """

    pools: Dict[str, Any] = field(default_factory=dict)
    stakes: Dict[str, Any] = field(default_factory=dict)
    lifecycle: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    time: int = 0

    @classmethod
    def from_ledger(cls, state: Dict[str, Any]) -> "LedgerView":
        return cls(
            pools=copy.deepcopy(state.get("pools", {})),
            stakes=copy.deepcopy(state.get("stakes", {})),
            lifecycle=copy.deepcopy(state.get("lifecycle", {})),
            params=copy.deepcopy(state.get("params", {})) if isinstance(state.get("params"), dict) else {},
            time=_as_int(state.get("time", 0) or 0),
        )

    def get_pool(self, key: str) -> Optional[PoolView]:
        rec = self.pools.get(key)
        if not isinstance(rec, dict) or not rec.get("exists"):
            return None
        return PoolView.from_record(rec)

    def list_pools(self) -> List[PoolView]:
        out: List[PoolView] = []
        for key in sorted(self.pools.keys()):
            pv = self.get_pool(key)
            if pv is not None:
                out.append(pv)
        return out

    def get_stake(self, account: str, key: str) -> StakeView:
        by_pool = self.stakes.get(account)
        rec = by_pool.get(key) if isinstance(by_pool, dict) else None
        return StakeView.from_record(account, key, rec)

    def get_param(self, key: str, default: Any = None) -> Any:
        try:
            return self.params.get(key, default)
        except Exception:
            return default
