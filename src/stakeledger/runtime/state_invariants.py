# src/stakeledger/runtime/state_invariants.py
from __future__ import annotations

"""State invariants / normalization helpers.

Ledger state is a nested JSON-like dict mutated deterministically by the
apply modules. This module is the single place that:

  - validates the state is dict-like
  - ensures the top-level containers exist (pools, stakes, lifecycle, params)

Record-level defaults stay with the apply module that owns the record.
"""

from collections.abc import MutableMapping
from typing import Any, Dict

from stakeledger.ledger.constants import UNSTAKE_FEE
from stakeledger.runtime.lifecycle import ensure_lifecycle

Json = Dict[str, Any]


def _ensure_dict(st: MutableMapping, key: str) -> None:
    v = st.get(key)
    if v is None:
        st[key] = {}
    elif not isinstance(v, dict):
        # Fail closed: do not attempt to coerce arbitrary types.
        raise TypeError(f"state[{key!r}] must be dict, got {type(v)}")


def ensure_state(st: Any) -> Json:
    """Ensure `st` is a dict and contains core keys.

    Returns the (possibly mutated) dict.

    Raises:
        TypeError: if st is not a MutableMapping
    """
    if not isinstance(st, MutableMapping):
        raise TypeError(f"state must be MutableMapping, got {type(st)}")

    # pools: key -> pool record; stakes: account -> key -> stake record
    _ensure_dict(st, "pools")
    _ensure_dict(st, "stakes")
    _ensure_dict(st, "params")

    params = st["params"]
    params.setdefault("owner", "")
    params.setdefault("fee_wallet", None)
    params.setdefault("unstake_fee", UNSTAKE_FEE)

    ensure_lifecycle(st)  # type: ignore[arg-type]
    st.setdefault("time", 0)

    return st  # type: ignore[return-value]


__all__ = ["ensure_state"]
