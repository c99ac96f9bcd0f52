# src/stakeledger/runtime/gateway.py
from __future__ import annotations

"""Token movement gateway.

The ledger never touches token balances itself. Every value movement goes
through a gateway with two capabilities:

  transfer_in(token, sender, amount)     pull `amount` from `sender` into custody
  transfer_out(token, recipient, amount) push `amount` from custody to `recipient`

Both are synchronous and atomic-or-fail: they either complete or raise
ExternalTransferError (any other exception is wrapped by the engine).

InMemoryTokenGateway is the reference implementation used by tests, the dev
seed file and the HTTP service when no external ledger is wired in. It models
ERC20-style balances and allowances (transfer_in consumes an allowance granted
to the custody account) and supports atomic() so a multi-transfer operation can
be rolled back as a unit.
"""

import copy
from contextlib import contextmanager
from typing import Dict, Iterator, Protocol

from stakeledger.ledger.constants import DEFAULT_CUSTODY_ACCOUNT
from stakeledger.runtime.errors import ExternalTransferError


class TokenMovementGateway(Protocol):
    def transfer_in(self, token: str, sender: str, amount: int) -> None: ...

    def transfer_out(self, token: str, recipient: str, amount: int) -> None: ...


class InMemoryTokenGateway:
    def __init__(self, *, custody: str = DEFAULT_CUSTODY_ACCOUNT, require_allowance: bool = True) -> None:
        self.custody = str(custody)
        self.require_allowance = bool(require_allowance)
        # token -> account -> amount
        self._balances: Dict[str, Dict[str, int]] = {}
        # token -> owner -> amount approved for the custody account
        self._allowances: Dict[str, Dict[str, int]] = {}

    # ----------------------------
    # Ledger helpers (setup / inspection)
    # ----------------------------

    def balance_of(self, token: str, account: str) -> int:
        return int(self._balances.get(token, {}).get(account, 0))

    def allowance(self, token: str, owner: str) -> int:
        return int(self._allowances.get(token, {}).get(owner, 0))

    def mint(self, token: str, account: str, amount: int) -> None:
        amt = int(amount)
        if amt < 0:
            raise ValueError("mint amount must be >= 0")
        bal = self._balances.setdefault(str(token), {})
        bal[str(account)] = int(bal.get(str(account), 0)) + amt

    def approve(self, token: str, owner: str, amount: int) -> None:
        amt = int(amount)
        if amt < 0:
            raise ValueError("allowance must be >= 0")
        self._allowances.setdefault(str(token), {})[str(owner)] = amt

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        """Plain account-to-account move (outside the ledger's custody)."""
        self._move(str(token), str(sender), str(recipient), int(amount))

    # ----------------------------
    # Gateway capabilities
    # ----------------------------

    def transfer_in(self, token: str, sender: str, amount: int) -> None:
        t, s, amt = str(token), str(sender), int(amount)
        if self.require_allowance:
            approved = self.allowance(t, s)
            if approved < amt:
                raise ExternalTransferError(
                    "transfer_failed",
                    "insufficient_allowance",
                    {"token": t, "account": s, "allowance": approved, "amount": amt},
                )
        self._move(t, s, self.custody, amt)
        if self.require_allowance:
            self._allowances[t][s] = self.allowance(t, s) - amt

    def transfer_out(self, token: str, recipient: str, amount: int) -> None:
        self._move(str(token), self.custody, str(recipient), int(amount))

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Undo every balance/allowance change made inside the block if it raises."""
        balances = copy.deepcopy(self._balances)
        allowances = copy.deepcopy(self._allowances)
        try:
            yield
        except BaseException:
            self._balances = balances
            self._allowances = allowances
            raise

    def _move(self, token: str, sender: str, recipient: str, amount: int) -> None:
        if amount <= 0:
            raise ExternalTransferError("transfer_failed", "bad_amount", {"token": token, "amount": amount})
        have = self.balance_of(token, sender)
        if have < amount:
            raise ExternalTransferError(
                "transfer_failed",
                "insufficient_balance",
                {"token": token, "account": sender, "balance": have, "amount": amount},
            )
        bal = self._balances.setdefault(token, {})
        bal[sender] = have - amount
        bal[recipient] = int(bal.get(recipient, 0)) + amount
