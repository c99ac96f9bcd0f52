# src/stakeledger/runtime/apply/common.py
from __future__ import annotations

from typing import Any, Dict

from stakeledger.runtime.errors import StateError, ValidationError

Json = Dict[str, Any]


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_str(v: Any) -> str:
    return str(v).strip() if isinstance(v, (str, int)) and not isinstance(v, bool) else ""


def require_int(v: Any, reason: str) -> int:
    """Strict integer parse: bools, floats and junk strings are rejected."""
    if isinstance(v, bool) or isinstance(v, float):
        raise ValidationError("invalid_input", reason, {"value": v})
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValidationError("invalid_input", reason, {"value": v})


def require_positive(v: Any, reason: str) -> int:
    n = require_int(v, reason)
    if n <= 0:
        raise ValidationError("invalid_input", reason, {"value": n})
    return n


def require_str(v: Any, reason: str) -> str:
    s = _as_str(v)
    if not s:
        raise ValidationError("invalid_input", reason, {"value": v})
    return s


def ensure_pools(state: Json) -> Json:
    pools = state.get("pools")
    if not isinstance(pools, dict):
        pools = {}
        state["pools"] = pools
    return pools


def get_pool_record(state: Json, key: Any) -> Json:
    """Return the live pool record for `key` or raise pool_not_exists."""
    k = _as_str(key)
    rec = ensure_pools(state).get(k)
    if not isinstance(rec, dict) or not rec.get("exists"):
        raise StateError("not_found", "pool_not_exists", {"key": k})
    return rec


def transfer_in(token: str, account: str, amount: int) -> Json:
    return {"direction": "in", "token": str(token), "account": str(account), "amount": int(amount)}


def transfer_out(token: str, account: str, amount: int) -> Json:
    return {"direction": "out", "token": str(token), "account": str(account), "amount": int(amount)}
