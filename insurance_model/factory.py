"""
Insurance pool deployment for onboarded markets.

Each market gets exactly one insurance pool, denominated in the market's
quote asset.
"""

import logging

from .errors import AlreadyExists
from .insurance_pool import InsurancePool

logger = logging.getLogger(__name__)


class InsurancePoolFactory:
    """
    Deploys and tracks insurance pools, one per market.
    """

    def __init__(self, config=None):
        # Config handed to every pool this factory deploys
        self.config = config

        # Mapping of market addresses to their insurance pool
        self.pools = {}

        # Addresses of every pool deployed by this factory
        self.pool_addresses = set()

    def deploy_insurance_pool(self, market, collateral_asset=None, fee_curve=None):
        """
        Deploys the insurance pool for a market.

        Args:
            market: The market to insure
            collateral_asset: Collateral token, defaults to the market's quote asset
            fee_curve: Optional immediate withdrawal fee curve for the pool

        Returns:
            The new InsurancePool

        Raises:
            AlreadyExists: If the market already has a pool
            AssetMismatch: If collateral_asset differs from the market's quote asset
        """
        if market.address in self.pools:
            logger.warning("pool deployment for %s rejected: pool already exists", market.address)
            raise AlreadyExists(market.address)

        pool = InsurancePool(
            market,
            collateral_asset or market.quote_asset(),
            config=self.config,
            fee_curve=fee_curve,
        )
        self.pools[market.address] = pool
        self.pool_addresses.add(pool.address)

        logger.info("pool created: %s for market %s (token %s)", pool.address, market.address, pool.token.address)
        return pool

    def get_pool(self, market):
        """Returns the pool insuring the market, or None."""
        return self.pools.get(market.address)

    def is_insurance_pool(self, address):
        return address in self.pool_addresses

    def get_pool_holdings(self, market):
        """Returns the collateral held by the market's pool, 0 if it has none."""
        pool = self.get_pool(market)
        if pool is None:
            return 0
        return pool.get_pool_holdings()
