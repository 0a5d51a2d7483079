"""
Protocol constants and per-pool settings for the Insurance Pool model.

All amounts are integers scaled by WAD (10**18), mirroring the fixed point
representation used by the contracts being modelled.
"""

import os
from dataclasses import dataclass

# Fixed point precision
WAD = 10**18

# Pool sizing: the target is 1% of the market's leveraged notional value
POOL_TARGET_RATIO = WAD // 100

# 8-hour funding contribution applied to the pool's shortfall fraction
FUNDING_RATE_SCALER = 3_652_300_000_000_000  # 0.0036523 WAD

# Minimum public collateral a drain leaves behind when it can
PUBLIC_FLOOR = WAD

# Coverage ratio denominator for the immediate withdrawal fee (2x target)
FEE_MULTIPLIER = 2 * WAD


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class PoolConfig:
    """
    Per-pool overrides of the protocol defaults.

    public_floor: amount of public collateral a drain preserves when the
        public bucket started at or above it
    drain_below_floor: whether a public bucket that started below the floor
        may be drained to zero (otherwise it is left untouched)
    charge_withdrawal_fee: deduct the immediate withdrawal fee from payouts
    check_invariants: assert conservation after every mutating operation
    """
    public_floor: int = PUBLIC_FLOOR
    drain_below_floor: bool = True
    charge_withdrawal_fee: bool = False
    check_invariants: bool = True

    def __post_init__(self):
        if not isinstance(self.public_floor, int) or isinstance(self.public_floor, bool):
            raise TypeError("public_floor must be an integer WAD amount")
        if self.public_floor < 0:
            raise ValueError("public_floor must be non-negative")

    @classmethod
    def from_env(cls):
        """Builds a config from INSURANCE_* environment variables."""
        floor = os.environ.get("INSURANCE_PUBLIC_FLOOR")
        return cls(
            public_floor=int(floor) if floor is not None else PUBLIC_FLOOR,
            drain_below_floor=_env_flag("INSURANCE_DRAIN_BELOW_FLOOR", True),
            charge_withdrawal_fee=_env_flag("INSURANCE_CHARGE_WITHDRAWAL_FEE", False),
            check_invariants=_env_flag("INSURANCE_CHECK_INVARIANTS", True),
        )
