from __future__ import annotations

import hmac
from typing import Dict

from fastapi import Request

ACCOUNT_HEADER = "x-stakeledger-account"
SESSION_HEADER = "x-stakeledger-session-key"


def require_account_session(
    request: Request,
    sessions: Dict[str, str],
    *,
    account_header: str = ACCOUNT_HEADER,
    session_header: str = SESSION_HEADER,
) -> str:
    """Resolve the account a user request acts as.

    Client provides:
      - X-StakeLedger-Account: "alice"
      - X-StakeLedger-Session-Key: "..."

    The key must match the one configured for that account. Raises
    PermissionError with one of:
      session_missing   either header absent
      session_invalid   unknown account or wrong key
    """
    acct = (request.headers.get(account_header) or "").strip()
    sk = (request.headers.get(session_header) or "").strip()
    if not acct or not sk:
        raise PermissionError("session_missing")

    expected = sessions.get(acct)
    if not expected:
        raise PermissionError("session_invalid")
    if not hmac.compare_digest(sk.encode("utf-8"), expected.encode("utf-8")):
        raise PermissionError("session_invalid")

    return acct
