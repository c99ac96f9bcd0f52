from __future__ import annotations

import hmac
from typing import Any, Dict, Optional

from fastapi import Request

from stakeledger.api.config import ApiConfig
from stakeledger.api.errors import ApiError
from stakeledger.api.security import require_account_session

Json = Dict[str, Any]


def _engine(request: Request):
    eng = getattr(request.app.state, "engine", None)
    if eng is None:
        raise ApiError.internal("not_ready", "engine not attached to app.state", {})
    return eng


def _bearer(request: Request) -> str:
    raw = request.headers.get("authorization") or ""
    scheme, _, token = raw.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def _require_admin(request: Request) -> str:
    """
    Admin gate for configuration routes.

    Returns the owner account the request acts as. The surface is closed
    (403) when no admin token is configured.
    """
    cfg = getattr(request.app.state, "cfg", None)
    expected = cfg.admin_token if isinstance(cfg, ApiConfig) else None
    if not expected:
        raise ApiError.forbidden("admin_disabled", "admin surface is closed (no admin token configured)", {})

    presented = _bearer(request)
    if not presented:
        raise ApiError.unauthorized("missing_token", "Authorization: Bearer <token> required", {})
    if not hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
        raise ApiError.forbidden("bad_token", "admin token rejected", {})

    return _engine(request).owner


def _require_account(request: Request, claimed: Optional[str] = None) -> str:
    """
    Session gate for user routes.

    Returns the authenticated account. A body `account` naming anyone else
    is refused, so a client can only stake, claim or unstake for itself.
    """
    cfg = getattr(request.app.state, "cfg", None)
    sessions = cfg.account_sessions if isinstance(cfg, ApiConfig) else {}
    if not sessions:
        raise ApiError.forbidden("accounts_disabled", "user surface is closed (no account sessions configured)", {})

    try:
        acct = require_account_session(request, sessions)
    except PermissionError as e:
        reason = str(e)
        if reason == "session_missing":
            raise ApiError.unauthorized(reason, "account and session key headers required", {})
        raise ApiError.forbidden(reason, "account session rejected", {})

    if claimed is not None and claimed.strip() != acct:
        raise ApiError.forbidden("account_mismatch", "request names another account", {"account": claimed})
    return acct


def _receipt(receipt: Json) -> Json:
    return {"ok": True, "receipt": receipt}
