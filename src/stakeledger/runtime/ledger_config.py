# src/stakeledger/runtime/ledger_config.py
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stakeledger.ledger.constants import DEFAULT_CUSTODY_ACCOUNT, FEE_DENOMINATOR, UNSTAKE_FEE

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    if v is None or isinstance(v, bool):
        return int(default)
    try:
        return int(v)
    except Exception:
        raise ValueError(f"expected integer, got: {v!r}")


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_opt_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def parse_account_sessions(v: Any) -> Dict[str, str]:
    """account -> session key. Accepts a mapping or "alice=k1,bob=k2"."""
    if v is None:
        return {}
    if isinstance(v, str):
        pairs = []
        for part in v.split(","):
            if not part.strip():
                continue
            acct, sep, key = part.partition("=")
            if not sep:
                raise ValueError(f"account_sessions entry must be account=key; got: {part.strip()!r}")
            pairs.append((acct, key))
    elif isinstance(v, dict):
        pairs = list(v.items())
    else:
        raise ValueError("account_sessions must be a mapping or account=key list")
    return {str(a).strip(): str(k).strip() for a, k in pairs}


@dataclass(frozen=True)
class LedgerConfig:
    mode: str  # "dev" | "test" | "prod"

    # ":memory:" selects the in-process store.
    db_path: str

    owner: str
    custody_account: str
    fee_wallet: Optional[str]
    unstake_fee: int

    seed_path: Optional[str]

    api_host: str
    api_port: int
    admin_token: Optional[str]

    # account -> session key for the user stake/claim/unstake routes.
    account_sessions: Dict[str, str]

    log_level: str

    @property
    def in_memory(self) -> bool:
        return self.db_path.strip() == ":memory:"


_ALLOWED_MODES = {"dev", "test", "prod"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_ledger_config(cfg: LedgerConfig) -> None:
    """Fail-fast validation for operator config."""

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {sorted(_ALLOWED_MODES)}; got: {cfg.mode!r}")

    if not isinstance(cfg.db_path, str) or not cfg.db_path.strip():
        raise ValueError("db_path must be a non-empty string")

    for name, v in (("owner", cfg.owner), ("custody_account", cfg.custody_account)):
        if not isinstance(v, str) or not v.strip():
            raise ValueError(f"{name} must be a non-empty string")

    if cfg.owner.strip() == cfg.custody_account.strip():
        raise ValueError("owner and custody_account must differ")

    if int(cfg.unstake_fee) < 0 or int(cfg.unstake_fee) > FEE_DENOMINATOR:
        raise ValueError(f"unstake_fee must be 0..{FEE_DENOMINATOR}; got: {cfg.unstake_fee}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if str(cfg.log_level or "").strip().upper() not in _LOG_LEVELS:
        raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}; got: {cfg.log_level!r}")

    for acct, key in (cfg.account_sessions or {}).items():
        if not acct or not key:
            raise ValueError("account_sessions entries need a non-empty account and key")

    if cfg.seed_path is not None and not Path(cfg.seed_path).is_file():
        raise ValueError(f"seed_path does not exist or is not a file: {cfg.seed_path!r}")


def default_ledger_config() -> LedgerConfig:
    return LedgerConfig(
        # No config file must not mean a permissive dev posture.
        mode="prod",
        db_path="./data/stakeledger.db",
        owner="owner",
        custody_account=DEFAULT_CUSTODY_ACCOUNT,
        fee_wallet=None,
        unstake_fee=UNSTAKE_FEE,
        seed_path=None,
        api_host="127.0.0.1",
        api_port=8080,
        admin_token=None,
        account_sessions={},
        log_level="INFO",
    )


def _from_mapping(raw: Json, base: LedgerConfig) -> LedgerConfig:
    return LedgerConfig(
        mode=_as_str(raw.get("mode"), base.mode).strip().lower(),
        db_path=_as_str(raw.get("db_path"), base.db_path),
        owner=_as_str(raw.get("owner"), base.owner).strip(),
        custody_account=_as_str(raw.get("custody_account"), base.custody_account).strip(),
        fee_wallet=_as_opt_str(raw.get("fee_wallet")) if "fee_wallet" in raw else base.fee_wallet,
        unstake_fee=_as_int(raw.get("unstake_fee"), base.unstake_fee),
        seed_path=_as_opt_str(raw.get("seed_path")) if "seed_path" in raw else base.seed_path,
        api_host=_as_str(raw.get("api_host"), base.api_host),
        api_port=_as_int(raw.get("api_port"), base.api_port),
        admin_token=_as_opt_str(raw.get("admin_token")) if "admin_token" in raw else base.admin_token,
        account_sessions=(
            parse_account_sessions(raw.get("account_sessions"))
            if "account_sessions" in raw
            else dict(base.account_sessions)
        ),
        log_level=_as_str(raw.get("log_level"), base.log_level).strip().upper(),
    )


def read_ledger_config_file(path: str) -> LedgerConfig:
    """Read a YAML (or JSON, which is valid YAML) config file over the defaults."""
    p = Path(path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError("ledger config must be a mapping")
    return _from_mapping(raw, default_ledger_config())


_ENV_KEYS = (
    "mode",
    "db_path",
    "owner",
    "custody_account",
    "fee_wallet",
    "unstake_fee",
    "seed_path",
    "api_host",
    "api_port",
    "admin_token",
    "account_sessions",
    "log_level",
)


def _env_overrides() -> Json:
    out: Json = {}
    for k in _ENV_KEYS:
        v = os.environ.get(f"STAKELEDGER_{k.upper()}")
        if v is not None and v.strip():
            out[k] = v.strip()
    return out


def load_ledger_config(*, config_path: Optional[str] = None) -> LedgerConfig:
    """Defaults, then the config file (if any), then STAKELEDGER_* variables."""
    p = config_path or os.environ.get("STAKELEDGER_CONFIG_PATH")
    cfg = read_ledger_config_file(p) if p else default_ledger_config()

    overrides = _env_overrides()
    if overrides:
        cfg = _from_mapping(overrides, cfg)

    validate_ledger_config(cfg)
    return cfg


def apply_ledger_config_to_env(cfg: LedgerConfig) -> None:
    """Export the resolved config so helpers that read the environment agree with it."""
    validate_ledger_config(cfg)
    os.environ["STAKELEDGER_MODE"] = (cfg.mode or "prod").strip().lower()
    os.environ["STAKELEDGER_DB_PATH"] = cfg.db_path
    os.environ["STAKELEDGER_LOG_LEVEL"] = cfg.log_level


def with_overrides(cfg: LedgerConfig, **changes: Any) -> LedgerConfig:
    out = replace(cfg, **changes)
    validate_ledger_config(out)
    return out
