# src/stakeledger/runtime/apply/admin.py
from __future__ import annotations

from typing import Any, Dict

from stakeledger.runtime.apply.common import require_str
from stakeledger.runtime.errors import ValidationError
from stakeledger.runtime.lifecycle import lifecycle_status, set_switch
from stakeledger.runtime.state_invariants import ensure_state

Json = Dict[str, Any]

_GATES = {
    "claims": "claims_paused",
    "unstaking": "unstaking_paused",
    "staking": "staking_paused",
}


def apply_set_gate(state: Json, *, gate: str, paused: bool) -> Json:
    """Flip one global switch. Setting a switch to its current value is a no-op."""
    name = _GATES.get(str(gate))
    if name is None:
        raise ValidationError("invalid_input", "unknown_gate", {"gate": str(gate), "allowed": sorted(_GATES)})
    set_switch(state, name, paused)
    return {"applied": "SET_GATE", "gate": str(gate), "paused": bool(paused), "lifecycle": lifecycle_status(state)}


def apply_set_fee_wallet(state: Json, *, wallet: Any) -> Json:
    """Set the account that receives unstake fees. None clears it."""
    ensure_state(state)
    w = None if wallet is None else require_str(wallet, "invalid_fee_wallet")
    old = state["params"].get("fee_wallet")
    state["params"]["fee_wallet"] = w
    return {"applied": "SET_FEE_WALLET", "old": old, "fee_wallet": w}
