# src/stakeledger/ledger/constants.py
from __future__ import annotations

"""Staking ledger constants.

Anchors:
- Reward rate is annualised over a fixed 365-day year
- APY is an integer divided by 100 in the rate formula
- Early-exit fee is expressed per mille of principal (5 = 0.5%)
"""

# 365 days * 24 hours * 60 minutes * 60 seconds
SECONDS_PER_YEAR: int = 31_536_000

# rate = principal * apy // APY_DENOMINATOR // SECONDS_PER_YEAR
APY_DENOMINATOR: int = 100

# fee = principal * unstake_fee // FEE_DENOMINATOR
UNSTAKE_FEE: int = 5
FEE_DENOMINATOR: int = 1000

# Default gateway-side account that holds staked principal and funded rewards.
DEFAULT_CUSTODY_ACCOUNT: str = "stakeledger"
