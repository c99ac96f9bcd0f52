from __future__ import annotations

"""Pydantic request schemas for the public API.

These exist only for HTTP input shape checks. Business validation (positive
amounts, APY, allowance) stays in the ledger so every caller gets the same
error reasons.
"""

from typing import Optional

from pydantic import BaseModel, Field


class AddPoolRequest(BaseModel):
    name: str = Field(..., description="Human readable pool name")
    key: str = Field(..., description="Pool key (staking token identifier)")
    apy: int = Field(..., description="Integer APY parameter")
    staking_token: str = Field(..., description="Token accepted as principal")
    reward_token: str = Field(..., description="Token paid as reward")
    validity_period: int = Field(..., description="Seconds the pool accepts stakes after start")
    reward_allowance: int = Field(..., description="Reward tokens pulled from the owner")


class UpdateApyRequest(BaseModel):
    apy: int


class UpdateTokensRequest(BaseModel):
    staking_token: Optional[str] = None
    reward_token: Optional[str] = None


class FeeWalletRequest(BaseModel):
    # null clears the wallet; fees are then withheld in custody
    fee_wallet: Optional[str] = None


class AccountRequest(BaseModel):
    # Optional echo of the session account; a mismatch is refused.
    account: Optional[str] = Field(None, description="Session account")


class StakeRequest(BaseModel):
    account: Optional[str] = Field(None, description="Session account")
    amount: int = Field(..., description="Principal to deposit, in token base units")
