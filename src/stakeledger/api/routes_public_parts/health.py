from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _health_payload(request: Request) -> dict[str, object]:
    # health must never crash; ledger fields are best-effort
    eng: Any = getattr(request.app.state, "engine", None)

    ready = eng is not None
    lifecycle = None
    pools = None
    ledger_time = None
    if eng is not None:
        try:
            st = eng.read_state()
            lifecycle = eng.lifecycle_status()
            pools = len(st.get("pools") or {})
            ledger_time = int(st.get("time", 0) or 0)
        except Exception:
            ready = False

    return {
        "ok": bool(ready),
        "service": "stakeledger",
        "version": "v1",
        "ts_ms": _now_ms(),
        "ledger_time": ledger_time,
        "pools": pools,
        "lifecycle": lifecycle,
    }


@router.get("/health")
def health(request: Request) -> dict[str, object]:
    return _health_payload(request)
