from __future__ import annotations

import contextlib
import fcntl
import os
import sys
import threading
from typing import Iterator, Optional

from stakeledger.runtime.errors import StateError


class SingleWriterLock:
    """
    Enforces a single-process writer for a SQLite-backed ledger.
    Uses a filesystem lock next to the database.
    """

    def __init__(self, path: str):
        self.path = path
        self._fd = None

    def acquire(self) -> None:
        d = os.path.dirname(self.path)
        if d:
            os.makedirs(d, exist_ok=True)
        self._fd = open(self.path, "w")
        try:
            fcntl.flock(self._fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            print(
                f"[stakeledger] single-writer lock already held: {self.path}",
                file=sys.stderr,
            )
            sys.exit(1)

    def release(self) -> None:
        if self._fd:
            try:
                fcntl.flock(self._fd, fcntl.LOCK_UN)
            finally:
                self._fd.close()
                self._fd = None


class ExecutionGuard:
    """In-process "not currently executing" guard for mutating operations.

    Other threads block until the running operation finishes. The owning
    thread re-entering (e.g. a gateway callback calling back into the engine)
    is rejected with StateError(reentrant_call).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._op: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._owner is not None

    @contextlib.contextmanager
    def hold(self, op: str) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            raise StateError("invalid_state", "reentrant_call", {"op": op, "in_flight": self._op})
        with self._lock:
            self._owner = me
            self._op = op
            try:
                yield
            finally:
                self._owner = None
                self._op = None
