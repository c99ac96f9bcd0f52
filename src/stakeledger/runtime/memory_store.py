from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Dict, Optional

Json = Dict[str, Any]


class MemoryLedgerStore:
    """In-process ledger store with the same contract as SqliteLedgerStore.

    update() mutates a deep copy and swaps it in only if `mut` returns
    normally, so a failed operation leaves the stored snapshot untouched.
    """

    path = ":memory:"

    def __init__(self, initial: Optional[Json] = None) -> None:
        self._lock = threading.RLock()
        self._state: Optional[Json] = copy.deepcopy(initial) if initial is not None else None

    def exists(self) -> bool:
        with self._lock:
            return self._state is not None

    def read(self) -> Json:
        with self._lock:
            if self._state is None:
                raise FileNotFoundError("memory ledger_state is missing")
            return copy.deepcopy(self._state)

    def write(self, st: Json) -> None:
        if not isinstance(st, dict):
            raise ValueError("ledger write expects dict")
        with self._lock:
            self._state = copy.deepcopy(st)

    def update(self, mut: Callable[[Json], Any]) -> Any:
        with self._lock:
            if self._state is None:
                raise FileNotFoundError("memory ledger_state is missing")
            work = copy.deepcopy(self._state)
            out = mut(work)
            self._state = work
            return out
