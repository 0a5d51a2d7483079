"""
Scenario simulation for the Insurance Pool model.

Drives a pool through hourly steps of random market activity:

1. The market's leveraged notional value drifts (log-normal returns)
2. Trading fees settle to the pool's market account and get pulled in
3. Depositors stake and redeem pool shares
4. Liquidations leave shortfalls that the liquidation authority drains

Histories are kept in numpy arrays and can be plotted with matplotlib.
"""

import logging

import numpy as np
import matplotlib.pyplot as plt

from .config import WAD
from .errors import InsuranceError
from .fixed_point import from_wad

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24


def tokens_to_wad(amount):
    """Converts a float token amount to WAD, keeping 6 decimals."""
    return int(round(float(amount) * 10**6)) * (WAD // 10**6)


def wad_to_float(amount):
    return float(from_wad(amount))


def _settle_to_pool(market, pool, amount):
    # The market receives the fee from traders before booking it to the pool
    market.quote_asset().mint(market.address, amount)
    market.credit_account(pool.address, amount)


def _stake(pool, depositor, amount):
    collateral = pool.collateral_asset
    collateral.mint(depositor, amount)
    collateral.approve(depositor, pool.address, amount)
    return pool.deposit(depositor, amount)


def simulate_pool_scenario(pool, market, days, seed=None, notional_volatility=0.02,
                           fee_rate=0.0002, deposit_probability=0.05, mean_deposit=5_000.0,
                           withdraw_probability=0.03, liquidation_probability=0.02,
                           mean_shortfall=2_000.0, depositors=10, plot_results=False):
    """
    Run a simulation of pool activity over the specified period.

    Args:
        pool: InsurancePool under test
        market: SimulatedMarket the pool insures
        days: Number of days to simulate, in hourly steps
        seed: Seed for the random generator
        notional_volatility: Standard deviation of hourly log returns of the
            leveraged notional value
        fee_rate: Fraction of notional settled to the pool each hour
        deposit_probability: Chance per hour that a depositor stakes
        mean_deposit: Mean stake size in whole tokens
        withdraw_probability: Chance per hour that a depositor redeems
        liquidation_probability: Chance per hour of a liquidation shortfall
        mean_shortfall: Mean shortfall size in whole tokens
        depositors: Number of distinct depositor accounts
        plot_results: Whether to generate plots of the results

    Returns:
        Dictionary with summary figures and the recorded histories
    """
    rng = np.random.default_rng(seed)
    steps = days * HOURS_PER_DAY
    authority = market.liquidation_authority()
    accounts = [f"lp{i}" for i in range(depositors)]

    # Arrays to store history
    time_points = np.arange(1, steps + 1) / HOURS_PER_DAY
    buffer_points = np.zeros(steps)
    public_points = np.zeros(steps)
    target_points = np.zeros(steps)
    funding_points = np.zeros(steps)
    drained_points = np.zeros(steps)
    shortfall_points = np.zeros(steps)

    log_returns = rng.normal(0, notional_volatility, steps)
    total_requested = 0
    total_drained = 0
    rejected = 0

    for i in range(steps):
        notional = int(market.leveraged_notional_value() * float(np.exp(log_returns[i])))
        market.set_leveraged_notional_value(notional)

        fee = tokens_to_wad(wad_to_float(notional) * fee_rate * rng.uniform(0.5, 1.5))
        if fee > 0:
            _settle_to_pool(market, pool, fee)
            pool.update_pool_amount()

        if rng.random() < deposit_probability:
            depositor = accounts[rng.integers(len(accounts))]
            amount = tokens_to_wad(rng.lognormal(np.log(mean_deposit), 0.75))
            try:
                _stake(pool, depositor, amount)
            except InsuranceError as exc:
                rejected += 1
                logger.debug("step %d: deposit rejected: %s", i, exc)

        if rng.random() < withdraw_probability:
            holders = [a for a in accounts if pool.get_pool_user_balance(a) > 0]
            if holders:
                holder = holders[rng.integers(len(holders))]
                shares = int(pool.get_pool_user_balance(holder) * float(rng.uniform(0.1, 1.0)))
                try:
                    pool.withdraw(holder, max(shares, 1))
                except InsuranceError as exc:
                    rejected += 1
                    logger.debug("step %d: withdraw rejected: %s", i, exc)

        if rng.random() < liquidation_probability:
            shortfall = tokens_to_wad(rng.lognormal(np.log(mean_shortfall), 1.0))
            drained = pool.drain_pool(authority, shortfall)
            if drained > 0:
                # The liquidation spends what it drained from the pool's market account
                market.transfer_balance(pool.address, authority, drained)
            total_requested += shortfall
            total_drained += drained
            shortfall_points[i] = wad_to_float(shortfall)
            drained_points[i] = wad_to_float(drained)

        buffer_points[i] = wad_to_float(pool.buffer_collateral_amount)
        public_points[i] = wad_to_float(pool.public_collateral_amount)
        target_points[i] = wad_to_float(pool.get_pool_target())
        funding_points[i] = wad_to_float(pool.get_pool_funding_rate())

    if plot_results:
        fig, axs = plt.subplots(4, 1, figsize=(12, 16), sharex=True)

        axs[0].stackplot(time_points, buffer_points, public_points, labels=["Buffer", "Public"])
        axs[0].set_title('Pool Collateral')
        axs[0].set_ylabel('Quote')
        axs[0].legend(loc="upper left")

        axs[1].plot(time_points, buffer_points + public_points, label="Holdings")
        axs[1].plot(time_points, target_points, label="Target")
        axs[1].set_title('Holdings vs Target')
        axs[1].set_ylabel('Quote')
        axs[1].legend(loc="upper left")

        axs[2].plot(time_points, funding_points)
        axs[2].set_title('Pool Funding Rate')
        axs[2].set_ylabel('Rate per 8h')

        axs[3].bar(time_points, shortfall_points, width=1 / HOURS_PER_DAY, label="Shortfall")
        axs[3].bar(time_points, drained_points, width=1 / HOURS_PER_DAY, label="Drained")
        axs[3].set_title('Liquidation Drains')
        axs[3].set_ylabel('Quote')
        axs[3].set_xlabel('Days')
        axs[3].legend(loc="upper left")

        plt.tight_layout()
        plt.show()

    return {
        'final_buffer': pool.buffer_collateral_amount,
        'final_public': pool.public_collateral_amount,
        'final_target': pool.get_pool_target(),
        'total_requested': total_requested,
        'total_drained': total_drained,
        'uncovered_shortfall': total_requested - total_drained,
        'rejected_actions': rejected,
        'history': {
            'days': time_points,
            'buffer': buffer_points,
            'public': public_points,
            'target': target_points,
            'funding_rate': funding_points,
            'drained': drained_points,
        },
    }
