# src/stakeledger/runtime/apply/__init__.py
"""Deterministic ledger state transitions.

Each apply_* function mutates the state dict it is given and returns a receipt:

    {"applied": "<OP>", ..., "transfers": [{"direction": "in"|"out", "token", "account", "amount"}]}

Apply functions never call the token gateway. The engine settles the receipt's
transfers only after the apply function has finished mutating state.

NOTE: Keep this package import-safe (no imports of the engine).
"""

from __future__ import annotations

__all__ = [
    "admin",
    "pools",
    "stakes",
]
