from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from stakeledger.api.routes_public_parts.common import _engine
from stakeledger.runtime.lifecycle import is_pool_open, pool_phase

router = APIRouter()

Json = Dict[str, Any]


@router.get("/pools")
def pools_list(request: Request) -> Json:
    eng = _engine(request)
    items = [p.to_dict() for p in eng.list_pools()]
    return {"ok": True, "count": len(items), "pools": items}


@router.get("/pools/{key}")
def pools_get(key: str, request: Request) -> Json:
    eng = _engine(request)
    pool = eng.get_pool(key).to_dict()
    return {
        "ok": True,
        "pool": pool,
        "phase": pool_phase(pool),
        "accepting_stakes": is_pool_open(pool, eng.clock.now()),
    }


@router.get("/lifecycle")
def lifecycle(request: Request) -> Json:
    eng = _engine(request)
    return {
        "ok": True,
        "lifecycle": eng.lifecycle_status(),
        "unstake_fee": eng.unstake_fee(),
        "fee_wallet": eng.fee_wallet(),
    }
