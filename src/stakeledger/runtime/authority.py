from __future__ import annotations

from typing import Protocol

from stakeledger.runtime.errors import AuthorizationError


class Authority(Protocol):
    """Injected capability deciding who may run admin-only operations."""

    @property
    def owner(self) -> str: ...

    def require(self, caller: str, action: str) -> None: ...


class OwnerAuthority:
    """Single privileged principal."""

    def __init__(self, owner: str) -> None:
        o = str(owner or "").strip()
        if not o:
            raise ValueError("owner must be a non-empty account id")
        self._owner = o

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, caller: str) -> bool:
        return str(caller or "").strip() == self._owner

    def require(self, caller: str, action: str) -> None:
        if self.is_owner(caller):
            return
        raise AuthorizationError(
            "forbidden",
            "not_owner",
            {"action": str(action), "caller": str(caller or "")},
        )
