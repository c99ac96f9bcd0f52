from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request

from stakeledger.api.routes_public_parts.common import _engine, _receipt, _require_account
from stakeledger.api.schemas import AccountRequest, StakeRequest

router = APIRouter()

Json = Dict[str, Any]


@router.get("/pools/{key}/stakes/{account}")
def stake_get(key: str, account: str, request: Request) -> Json:
    """Stake record for (account, pool). Never-staked accounts get a zero record."""
    sv = _engine(request).get_stake(account, key)
    return {"ok": True, "stake": sv.to_dict(), "empty": sv.is_empty}


@router.get("/pools/{key}/rewards/{account}")
def rewards_get(key: str, account: str, request: Request) -> Json:
    eng = _engine(request)
    return {
        "ok": True,
        "account": account,
        "key": key,
        "reward_per_second": eng.calculate_reward_per_second(account, key),
        "pending_reward": eng.view_rewards(account, key),
    }


# Mutating routes act as the session account, never as a body-supplied one.


@router.post("/pools/{key}/stake")
def stake_post(key: str, body: StakeRequest, request: Request) -> Json:
    acct = _require_account(request, body.account)
    return _receipt(_engine(request).stake(acct, key, body.amount))


@router.post("/pools/{key}/claim")
def claim_post(key: str, request: Request, body: Optional[AccountRequest] = None) -> Json:
    acct = _require_account(request, body.account if body else None)
    return _receipt(_engine(request).claim_rewards(acct, key))


@router.post("/pools/{key}/unstake")
def unstake_post(key: str, request: Request, body: Optional[AccountRequest] = None) -> Json:
    acct = _require_account(request, body.account if body else None)
    return _receipt(_engine(request).unstake(acct, key))
