from __future__ import annotations

"""Process-local ledger metrics.

Counters:
  ops_total{op,outcome}          every engine operation, applied or rejected
  op_rejections_total{op,reason} rejected operations by stable error reason

Gauges (refreshed from ledger state):
  pools, pools_active
  pool_total_staked{pool}, pool_reward_unpaid{pool}
"""

import os
import threading
import time
from typing import Any, Dict, Optional, Tuple

Labels = Tuple[Tuple[str, str], ...]
_Key = Tuple[str, Labels]

_lock = threading.Lock()
_counters: Dict[_Key, int] = {}
_gauges: Dict[_Key, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    v = (os.environ.get("STAKELEDGER_METRICS_ENABLED") or "").strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def _key(name: str, labels: Dict[str, Any]) -> Optional[_Key]:
    n = str(name or "").strip()
    if not n:
        return None
    return n, tuple(sorted((str(k), str(v)) for k, v in labels.items() if v is not None))


def inc_counter(name: str, value: int = 1, **labels: Any) -> None:
    k = _key(name, labels)
    if k is None:
        return
    with _lock:
        _counters[k] = _counters.get(k, 0) + int(value)


def set_gauge(name: str, value: int, **labels: Any) -> None:
    k = _key(name, labels)
    if k is None:
        return
    with _lock:
        _gauges[k] = int(value)


def record_op(op: str, outcome: str, reason: Optional[str] = None) -> None:
    inc_counter("ops_total", op=op, outcome=outcome)
    if reason:
        inc_counter("op_rejections_total", op=op, reason=reason)


def observe_ledger(state: Dict[str, Any]) -> None:
    pools = state.get("pools") if isinstance(state.get("pools"), dict) else {}
    active = 0
    for key, pool in pools.items():
        if not isinstance(pool, dict):
            continue
        if pool.get("started"):
            active += 1
        set_gauge("pool_total_staked", int(pool.get("total_staked", 0) or 0), pool=key)
        unpaid = int(pool.get("reward_funded", 0) or 0) - int(pool.get("reward_paid", 0) or 0)
        set_gauge("pool_reward_unpaid", unpaid, pool=key)
    set_gauge("pools", len(pools))
    set_gauge("pools_active", active)


def reset() -> None:
    """Clear all counters and gauges (tests)."""
    with _lock:
        _counters.clear()
        _gauges.clear()


def _series(name: str, labels: Labels) -> str:
    if not labels:
        return name
    inner = ",".join(f'{k}="{v}"' for k, v in labels)
    return f"{name}{{{inner}}}"


def snapshot() -> dict:
    with _lock:
        now_ms = int(time.time() * 1000)
        return {
            "uptime_ms": now_ms - _started_ms,
            "counters": {_series(n, lb): v for (n, lb), v in _counters.items()},
            "gauges": {_series(n, lb): v for (n, lb), v in _gauges.items()},
        }


def format_prometheus(prefix: str = "stakeledger_") -> str:
    """Prometheus text exposition, one TYPE line per metric family."""
    pre = str(prefix or "").strip() or "stakeledger_"
    with _lock:
        families = [("counter", dict(_counters)), ("gauge", dict(_gauges))]
    lines: list[str] = [
        f"# TYPE {pre}uptime_ms gauge",
        f"{pre}uptime_ms {int(time.time() * 1000) - _started_ms}",
    ]
    for kind, values in families:
        seen = set()
        for name, labels in sorted(values):
            if name not in seen:
                lines.append(f"# TYPE {pre}{name} {kind}")
                seen.add(name)
            lines.append(f"{pre}{_series(name, labels)} {values[(name, labels)]}")
    return "\n".join(lines) + "\n"
