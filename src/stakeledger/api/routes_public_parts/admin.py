from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from stakeledger.api.errors import ApiError
from stakeledger.api.routes_public_parts.common import _engine, _receipt, _require_admin
from stakeledger.api.schemas import AddPoolRequest, FeeWalletRequest, UpdateApyRequest, UpdateTokensRequest

router = APIRouter()

Json = Dict[str, Any]


@router.post("/pools")
def pools_add(body: AddPoolRequest, request: Request) -> Json:
    owner = _require_admin(request)
    return _receipt(
        _engine(request).add_pool(
            owner,
            name=body.name,
            key=body.key,
            apy=body.apy,
            staking_token=body.staking_token,
            reward_token=body.reward_token,
            validity_period=body.validity_period,
            reward_allowance=body.reward_allowance,
        )
    )


@router.post("/pools/{key}/start")
def pools_start(key: str, request: Request) -> Json:
    owner = _require_admin(request)
    return _receipt(_engine(request).start_staking(owner, key))


@router.post("/pools/{key}/pause")
def pools_pause(key: str, request: Request) -> Json:
    owner = _require_admin(request)
    return _receipt(_engine(request).pause_staking(owner, key))


@router.post("/pools/{key}/apy")
def pools_apy(key: str, body: UpdateApyRequest, request: Request) -> Json:
    owner = _require_admin(request)
    return _receipt(_engine(request).update_pool_apy(owner, key, body.apy))


@router.post("/pools/{key}/tokens")
def pools_tokens(key: str, body: UpdateTokensRequest, request: Request) -> Json:
    owner = _require_admin(request)
    if body.staking_token is None and body.reward_token is None:
        raise ApiError.bad_request("invalid_input", "staking_token or reward_token required", {})
    return _receipt(
        _engine(request).update_pool_tokens(
            owner, key, staking_token=body.staking_token, reward_token=body.reward_token
        )
    )


@router.post("/gates/{gate}/{action}")
def gates_toggle(gate: str, action: str, request: Request) -> Json:
    owner = _require_admin(request)
    eng = _engine(request)
    ops = {
        ("claims", "pause"): eng.pause_claims,
        ("claims", "start"): eng.start_claims,
        ("unstaking", "pause"): eng.pause_unstaking,
        ("unstaking", "start"): eng.start_unstaking,
    }
    fn = ops.get((gate, action))
    if fn is None:
        raise ApiError.not_found("unknown_gate", "unknown gate or action", {"gate": gate, "action": action})
    return _receipt(fn(owner))


@router.post("/fee-wallet")
def fee_wallet_set(body: FeeWalletRequest, request: Request) -> Json:
    owner = _require_admin(request)
    return _receipt(_engine(request).set_fee_wallet(owner, body.fee_wallet))
