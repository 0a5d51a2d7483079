"""
Visualization simulation for the Insurance Pool model.

This script runs an insurance pool through a month of market activity and
plots its collateral, target, funding rate and liquidation drains.
"""

import logging
import sys
import os

import numpy as np

# Add the project root to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from insurance_model import CollateralToken, InsurancePoolFactory, PoolConfig, SimulatedMarket
from insurance_model.simulation import simulate_pool_scenario, tokens_to_wad, wad_to_float


def run_visualization_simulation(days=30, seed=7):
    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    collateral = CollateralToken()
    market = SimulatedMarket(collateral, leveraged_notional_value=tokens_to_wad(2_000_000))

    factory = InsurancePoolFactory(config=PoolConfig.from_env())
    pool = factory.deploy_insurance_pool(market)
    print(f"Deployed {pool.address} with share token {pool.token.address}")
    print(f"Target: {wad_to_float(pool.get_pool_target()):,.2f}")

    print("\nSeeding the pool with public deposits...")
    rng = np.random.default_rng(seed)
    for i in range(5):
        amount = tokens_to_wad(rng.uniform(1_000.0, 5_000.0))
        collateral.mint(f"lp{i}", amount)
        collateral.approve(f"lp{i}", pool.address, amount)
        shares = pool.deposit(f"lp{i}", amount)
        print(f"  lp{i}: {wad_to_float(amount):,.2f} for {wad_to_float(shares):,.2f} shares")

    print("\nRunning simulation with visualizations...")
    results = simulate_pool_scenario(pool, market, days, seed=seed, plot_results=True)

    print("\nSimulation Results:")
    for key, value in results.items():
        if key == 'history':
            continue
        if key == 'rejected_actions':
            print(f"  {key}: {value}")
        else:
            print(f"  {key}: {wad_to_float(value):,.2f}")


if __name__ == "__main__":
    run_visualization_simulation()
