"""
Pool Math for the Insurance Pool model.

Pure functions used by the insurance pool to price pool shares, size the
pool and report its funding rate contribution back to the market. All
inputs and outputs are integer WAD amounts.
"""

from typing import Protocol

from .config import FEE_MULTIPLIER, FUNDING_RATE_SCALER, POOL_TARGET_RATIO, WAD
from .fixed_point import div_wad, mul_wad


def calc_mint_amount(share_supply: int, collateral_held: int, amount_to_stake: int) -> int:
    """
    Calculates how many pool shares a deposit is worth.

    New shares keep the existing shares-per-collateral ratio. Returns 0 when
    any input is 0, in which case there is no ratio to preserve.

    Args:
        share_supply: Total pool share supply
        collateral_held: Public collateral backing the supply
        amount_to_stake: Collateral being deposited

    Returns:
        Number of shares to mint
    """
    if share_supply == 0 or amount_to_stake == 0 or collateral_held == 0:
        return 0
    return div_wad(mul_wad(share_supply, amount_to_stake), collateral_held)


def calc_withdraw_amount(share_supply: int, collateral_held: int, shares_to_burn: int) -> int:
    """
    Calculates how much collateral burning pool shares releases.

    Args:
        share_supply: Total pool share supply
        collateral_held: Public collateral backing the supply
        shares_to_burn: Shares being redeemed

    Returns:
        Collateral owed for the shares, 0 when any input is 0
    """
    if share_supply == 0 or shares_to_burn == 0 or collateral_held == 0:
        return 0
    return div_wad(mul_wad(shares_to_burn, collateral_held), share_supply)


def get_pool_target(leveraged_notional_value: int) -> int:
    """Returns the desired pool size, 1% of the leveraged notional value."""
    return mul_wad(leveraged_notional_value, POOL_TARGET_RATIO)


def get_pool_funding_rate(target: int, current_collateral: int, leveraged_notional_value: int) -> int:
    """
    Returns the pool's 8-hour funding rate contribution.

    The rate is proportional to the pool's shortfall against its target as a
    fraction of the market's leveraged notional value, and is 0 once the pool
    holds at least its target.
    """
    if leveraged_notional_value <= 0:
        return 0
    shortfall = max(target - current_collateral, 0)
    return mul_wad(FUNDING_RATE_SCALER, div_wad(shortfall, leveraged_notional_value))


def calculate_immediate_withdrawal_fee(target: int, pool_token_underlying: int,
                                       pending_withdrawals: int, collateral_amount: int) -> int:
    """
    Prices the fee for withdrawing collateral while the pool is below target.

    The coverage ratio r is the current backing plus the amount being
    withdrawn, relative to twice the target, capped at 1. The fee is
    collateral_amount * (1 - r)^2, steep near depletion and zero at or above
    target.

    Args:
        target: Pool target
        pool_token_underlying: Public collateral before the withdrawal
        pending_withdrawals: Amount currently being withdrawn
        collateral_amount: Collateral being withdrawn

    Returns:
        The fee, never more than collateral_amount
    """
    if target <= 0:
        return 0
    ratio = div_wad(pool_token_underlying + pending_withdrawals, mul_wad(FEE_MULTIPLIER, target))
    ratio = min(WAD, max(ratio, 0))
    shortfall = WAD - ratio
    return mul_wad(collateral_amount, mul_wad(shortfall, shortfall))


class WithdrawalFeeCurve(Protocol):
    """Signature of a pricing curve the pool can charge on withdrawals."""

    def __call__(self, target: int, pool_token_underlying: int,
                 pending_withdrawals: int, collateral_amount: int) -> int:
        ...
