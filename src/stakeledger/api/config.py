import os
from dataclasses import dataclass, field
from typing import Dict

from stakeledger.runtime.ledger_config import LedgerConfig, parse_account_sessions


@dataclass(frozen=True)
class ApiConfig:
    mode: str  # "dev" | "test" | "prod"
    # None closes the admin surface.
    admin_token: str | None
    # Empty closes the user stake/claim/unstake routes.
    account_sessions: Dict[str, str] = field(default_factory=dict)


def load_api_config() -> ApiConfig:
    mode = os.getenv("STAKELEDGER_MODE", "prod").strip().lower()
    token = (os.getenv("STAKELEDGER_ADMIN_TOKEN") or "").strip() or None
    sessions = parse_account_sessions(os.getenv("STAKELEDGER_ACCOUNT_SESSIONS") or None)
    return ApiConfig(mode=mode, admin_token=token, account_sessions=sessions)


def api_config_from_ledger(cfg: LedgerConfig) -> ApiConfig:
    return ApiConfig(mode=cfg.mode, admin_token=cfg.admin_token, account_sessions=dict(cfg.account_sessions))
