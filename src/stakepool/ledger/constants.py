# src/stakepool/ledger/constants.py
from __future__ import annotations

"""Pool monetary constants.

- Rates are integer basis points (1 bps = 0.01% per year)
- Accrual year is a fixed 365 days for determinism
- Amounts are integer base units; 1 whole unit = 10**ASSET_DECIMALS base units
"""

# Rate precision: 10_000 bps == 100% per year
RATE_DENOMINATOR: int = 10_000

# Accrual year (365d, no leap handling)
SECONDS_PER_YEAR: int = 365 * 24 * 60 * 60

# Asset precision (1 unit = 1e-18 base units)
ASSET_DECIMALS: int = 18
COIN: int = 10**ASSET_DECIMALS

# Largest amount an asset balance can hold (uint256)
MAX_ASSET_UNITS: int = 2**256 - 1

# Default rate curve: 10% APY at an empty pool, floor 0.1%
DEFAULT_INITIAL_RATE: int = 1_000
DEFAULT_MINIMUM_RATE: int = 10

# Linear decay: -1 bps for every 100 whole units locked
DEFAULT_DECAY_STEP: int = 100 * COIN
DEFAULT_DECAY_BPS_PER_STEP: int = 1

# Lock + exit policy
DEFAULT_MINIMUM_LOCK_SECONDS: int = 7 * 24 * 60 * 60
DEFAULT_EMERGENCY_PENALTY_PERCENT: int = 10
