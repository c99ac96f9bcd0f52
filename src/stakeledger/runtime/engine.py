from __future__ import annotations

import contextlib
import logging
from typing import Any, Callable, ContextManager, Dict, List, Optional, Protocol

from stakeledger.ledger.constants import FEE_DENOMINATOR, UNSTAKE_FEE
from stakeledger.ledger.state import LedgerView, PoolView, StakeView
from stakeledger.runtime.apply import admin as admin_apply
from stakeledger.runtime.apply import pools as pool_apply
from stakeledger.runtime.apply import stakes as stake_apply
from stakeledger.runtime.apply.common import get_pool_record, require_str
from stakeledger.runtime.authority import Authority
from stakeledger.runtime.clock import Clock
from stakeledger.runtime.errors import ExternalTransferError, StakingError, StateError, ValidationError
from stakeledger.runtime.gateway import TokenMovementGateway
from stakeledger.runtime.ledger_logging import log_event
from stakeledger.runtime.lifecycle import lifecycle_status
from stakeledger.runtime.metrics import observe_ledger, record_op
from stakeledger.runtime.single_writer import ExecutionGuard
from stakeledger.runtime.state_invariants import ensure_state

Json = Dict[str, Any]

log = logging.getLogger("stakeledger.engine")


class LedgerStore(Protocol):
    def exists(self) -> bool: ...

    def read(self) -> Json: ...

    def write(self, st: Json) -> None: ...

    def update(self, mut: Callable[[Json], Any]) -> Any: ...


class EngineError(RuntimeError):
    pass


def validate_unstake_fee(v: Any) -> int:
    if isinstance(v, bool):
        raise ValidationError("invalid_input", "invalid_unstake_fee", {"value": v})
    try:
        fee = int(v)
    except (TypeError, ValueError):
        raise ValidationError("invalid_input", "invalid_unstake_fee", {"value": v})
    if fee < 0 or fee > FEE_DENOMINATOR:
        raise ValidationError("invalid_input", "invalid_unstake_fee", {"value": fee, "max": FEE_DENOMINATOR})
    return fee


def _log_fields(receipt: Json) -> Json:
    out: Json = {}
    for k in ("amount", "reward", "fee", "net", "principal", "apy", "reward_allowance", "fee_wallet", "gate", "paused"):
        if k in receipt:
            out[k] = receipt[k]
    return out


class StakingEngine:
    """Multi-pool staking ledger.

    Every mutating operation runs as one serialised transaction:

      1. the execution guard is taken (nested calls fail with reentrant_call)
      2. admin operations check the authority
      3. the store's update() hands the apply function a working copy of state
      4. the apply function finishes all record mutations and returns a receipt
      5. the receipt's transfers are settled through the gateway
      6. the store commits only if every transfer succeeded, and the gateway
         moves are rolled back if the commit itself fails

    Read-only views work on a fresh snapshot and never take the guard.
    """

    def __init__(
        self,
        *,
        store: LedgerStore,
        clock: Clock,
        gateway: TokenMovementGateway,
        authority: Authority,
        unstake_fee: int = UNSTAKE_FEE,
        fee_wallet: Optional[str] = None,
        guard: Optional[ExecutionGuard] = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._gateway = gateway
        self._authority = authority
        self._guard = guard or ExecutionGuard()

        fee = validate_unstake_fee(unstake_fee)

        if store.exists():
            st = ensure_state(store.read())
            persisted_owner = str(st["params"].get("owner") or "").strip()
            if persisted_owner and persisted_owner != authority.owner:
                raise EngineError(
                    f"owner mismatch: db={persisted_owner!r} engine={authority.owner!r}. Refuse to start."
                )
        else:
            st = ensure_state({})

        # unstake_fee is boot configuration; fee_wallet only seeds an unset slot
        # so a runtime set_fee_wallet survives restarts.
        st["params"]["owner"] = authority.owner
        st["params"]["unstake_fee"] = fee
        if fee_wallet and not st["params"].get("fee_wallet"):
            st["params"]["fee_wallet"] = str(fee_wallet)
        store.write(st)

        observe_ledger(st)

    # ----------------------------
    # Execution
    # ----------------------------

    def _gateway_atomic(self) -> ContextManager[Any]:
        atomic = getattr(self._gateway, "atomic", None)
        return atomic() if callable(atomic) else contextlib.nullcontext()

    def _settle(self, transfers: List[Json]) -> None:
        try:
            for t in transfers:
                if t["direction"] == "in":
                    self._gateway.transfer_in(t["token"], t["account"], int(t["amount"]))
                else:
                    self._gateway.transfer_out(t["token"], t["account"], int(t["amount"]))
        except StakingError:
            raise
        except Exception as e:
            raise ExternalTransferError("transfer_failed", "gateway_error", {"error": str(e)}) from e

    def _execute(
        self,
        op: str,
        caller: Any,
        mut: Callable[[Json, int, str], Json],
        *,
        admin: bool = False,
        key: Any = None,
    ) -> Json:
        try:
            with self._guard.hold(op):
                who = require_str(caller, "invalid_account")
                if admin:
                    self._authority.require(who, op)
                now = int(self._clock.now())

                seen: List[Json] = []

                def _apply(st: Json) -> Json:
                    ensure_state(st)
                    last = int(st.get("time", 0) or 0)
                    if now < last:
                        raise StateError("invalid_state", "clock_regressed", {"now": now, "last": last})
                    receipt = mut(st, now, who)
                    st["time"] = now
                    self._settle(list(receipt.get("transfers") or []))
                    seen.append(st)
                    return receipt

                # Gateway moves are undone unless the store commit also succeeds.
                with self._gateway_atomic():
                    receipt = self._store.update(_apply)
                observe_ledger(seen[-1])
        except StakingError as e:
            record_op(op, "rejected", e.reason)
            log_event(log, "op_rejected", op=op, caller=str(caller), key=key, code=e.code, reason=e.reason)
            raise

        record_op(op, "applied")
        log_event(log, "op_applied", op=op, caller=str(caller), key=key, **_log_fields(receipt))
        return receipt

    # ----------------------------
    # Admin: pool registry
    # ----------------------------

    def add_pool(
        self,
        caller: str,
        *,
        name: str,
        key: str,
        apy: int,
        staking_token: str,
        reward_token: str,
        validity_period: int,
        reward_allowance: int,
    ) -> Json:
        return self._execute(
            "add_pool",
            caller,
            lambda st, now, who: pool_apply.apply_add_pool(
                st,
                caller=who,
                name=name,
                key=key,
                apy=apy,
                staking_token=staking_token,
                reward_token=reward_token,
                validity_period=validity_period,
                reward_allowance=reward_allowance,
                now=now,
            ),
            admin=True,
            key=key,
        )

    def start_staking(self, caller: str, key: str) -> Json:
        return self._execute(
            "start_staking",
            caller,
            lambda st, now, who: pool_apply.apply_start_staking(st, key=key, now=now),
            admin=True,
            key=key,
        )

    def pause_staking(self, caller: str, key: str) -> Json:
        return self._execute(
            "pause_staking",
            caller,
            lambda st, now, who: pool_apply.apply_pause_staking(st, key=key),
            admin=True,
            key=key,
        )

    def update_pool_apy(self, caller: str, key: str, new_apy: int) -> Json:
        return self._execute(
            "update_pool_apy",
            caller,
            lambda st, now, who: pool_apply.apply_update_pool_apy(st, key=key, new_apy=new_apy),
            admin=True,
            key=key,
        )

    def update_pool_tokens(
        self,
        caller: str,
        key: str,
        *,
        staking_token: Optional[str] = None,
        reward_token: Optional[str] = None,
    ) -> Json:
        return self._execute(
            "update_pool_tokens",
            caller,
            lambda st, now, who: pool_apply.apply_update_pool_tokens(
                st, key=key, staking_token=staking_token, reward_token=reward_token
            ),
            admin=True,
            key=key,
        )

    # ----------------------------
    # Admin: global switches
    # ----------------------------

    def _set_gate(self, op: str, caller: str, gate: str, paused: bool) -> Json:
        return self._execute(
            op,
            caller,
            lambda st, now, who: admin_apply.apply_set_gate(st, gate=gate, paused=paused),
            admin=True,
        )

    def pause_claims(self, caller: str) -> Json:
        return self._set_gate("pause_claims", caller, "claims", True)

    def start_claims(self, caller: str) -> Json:
        return self._set_gate("start_claims", caller, "claims", False)

    def pause_unstaking(self, caller: str) -> Json:
        return self._set_gate("pause_unstaking", caller, "unstaking", True)

    def start_unstaking(self, caller: str) -> Json:
        return self._set_gate("start_unstaking", caller, "unstaking", False)

    def set_fee_wallet(self, caller: str, wallet: Optional[str]) -> Json:
        return self._execute(
            "set_fee_wallet",
            caller,
            lambda st, now, who: admin_apply.apply_set_fee_wallet(st, wallet=wallet),
            admin=True,
        )

    # ----------------------------
    # Account operations
    # ----------------------------

    def stake(self, caller: str, key: str, amount: int) -> Json:
        return self._execute(
            "stake",
            caller,
            lambda st, now, who: stake_apply.apply_stake(st, caller=who, key=key, amount=amount, now=now),
            key=key,
        )

    def claim_rewards(self, caller: str, key: str) -> Json:
        return self._execute(
            "claim_rewards",
            caller,
            lambda st, now, who: stake_apply.apply_claim_rewards(st, caller=who, key=key, now=now),
            key=key,
        )

    def unstake(self, caller: str, key: str) -> Json:
        return self._execute(
            "unstake",
            caller,
            lambda st, now, who: stake_apply.apply_unstake(st, caller=who, key=key, now=now),
            key=key,
        )

    # ----------------------------
    # Read-only views
    # ----------------------------

    @property
    def owner(self) -> str:
        return self._authority.owner

    @property
    def gateway(self) -> TokenMovementGateway:
        return self._gateway

    @property
    def clock(self) -> Clock:
        return self._clock

    def read_state(self) -> Json:
        return ensure_state(self._store.read())

    def view(self) -> LedgerView:
        return LedgerView.from_ledger(self.read_state())

    def get_pool(self, key: str) -> PoolView:
        st = self.read_state()
        return PoolView.from_record(get_pool_record(st, key))

    def list_pools(self) -> List[PoolView]:
        return self.view().list_pools()

    def get_stake(self, account: str, key: str) -> StakeView:
        st = self.read_state()
        pool = get_pool_record(st, key)
        return StakeView.from_record(account, pool["key"], stake_apply.peek_stake(st, str(account), pool["key"]))

    def calculate_reward_per_second(self, account: str, key: str) -> int:
        return stake_apply.calculate_reward_per_second(self.read_state(), account=account, key=key)

    def view_rewards(self, account: str, key: str) -> int:
        return stake_apply.view_rewards(self.read_state(), account=account, key=key, now=int(self._clock.now()))

    def lifecycle_status(self) -> Json:
        return lifecycle_status(self.read_state())

    def unstake_fee(self) -> int:
        return int(self.read_state()["params"].get("unstake_fee", UNSTAKE_FEE))

    def fee_wallet(self) -> Optional[str]:
        return self.read_state()["params"].get("fee_wallet") or None
