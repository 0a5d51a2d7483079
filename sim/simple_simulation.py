"""
Simple simulation for the Insurance Pool model.

Walks one pool through settlement inflows, deposits, a withdrawal and a
series of liquidation drains, printing the buckets after each step.
"""

import logging
import sys
import os

# Add the project root to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from insurance_model import CollateralToken, InsuranceError, InsurancePool, SimulatedMarket, from_wad, to_wad


def print_pool(pool, label):
    print(f"{label}:")
    print(f"  buffer: {from_wad(pool.buffer_collateral_amount)}")
    print(f"  public: {from_wad(pool.public_collateral_amount)}")
    print(f"  shares: {from_wad(pool.token.total_supply)}")
    print(f"  target: {from_wad(pool.get_pool_target())}")
    print(f"  funding rate: {from_wad(pool.get_pool_funding_rate())}")


def run_basic_simulation():
    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")

    collateral = CollateralToken()
    market = SimulatedMarket(collateral, leveraged_notional_value=to_wad(100_000))
    pool = InsurancePool(market, collateral)
    authority = market.liquidation_authority()
    print_pool(pool, "Empty pool")

    print("\nMarket settles 400 in trading fees to the pool")
    collateral.mint(market.address, to_wad(400))
    market.credit_account(pool.address, to_wad(400))
    pool.update_pool_amount()
    print_pool(pool, "After pulling fees")

    print("\nalice and bob deposit")
    for user, amount in (("alice", to_wad(300)), ("bob", to_wad(200))):
        collateral.mint(user, amount)
        collateral.approve(user, pool.address, amount)
        shares = pool.deposit(user, amount)
        print(f"  {user}: {from_wad(amount)} for {from_wad(shares)} shares")
    print_pool(pool, "After deposits")

    print("\nLiquidations leave shortfalls")
    for shortfall in (to_wad(250), to_wad(500), to_wad(1_000)):
        drained = pool.drain_pool(authority, shortfall)
        if drained > 0:
            market.transfer_balance(pool.address, authority, drained)
        print(f"  requested {from_wad(shortfall)}, drained {from_wad(drained)}")
    print_pool(pool, "After drains")

    print("\nbob leaves")
    payout = pool.withdraw("bob", pool.get_pool_user_balance("bob"))
    print(f"  bob received {from_wad(payout)}")

    print("\nmallory tries to drain the pool")
    try:
        pool.drain_pool("mallory", to_wad(1))
    except InsuranceError as exc:
        print(f"  rejected: {exc}")

    print_pool(pool, "Final pool")


if __name__ == "__main__":
    run_basic_simulation()
