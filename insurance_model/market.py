"""
Market collaborator for the Insurance Pool model.

The insurance pool only needs a narrow view of the perpetuals market it
insures: the quote balance the market has settled to the pool, the market's
leveraged notional value, who its liquidation authority is, and deposit /
withdraw of quote tokens against the pool's market account. `Market` names
that interface; `SimulatedMarket` is an in-memory implementation used by the
tests and simulations.
"""

import logging
from typing import Protocol

from .tokens import CollateralToken

logger = logging.getLogger(__name__)


class Market(Protocol):
    address: str

    def quote_asset(self) -> CollateralToken: ...

    def get_settled_pool_balance(self, account: str) -> int: ...

    def leveraged_notional_value(self) -> int: ...

    def liquidation_authority(self) -> str: ...

    def deposit(self, sender: str, amount: int) -> None: ...

    def withdraw(self, sender: str, amount: int) -> None: ...


class SimulatedMarket:
    """
    Simple market implementation for simulations and tests.

    Keeps a quote balance per account backed by quote tokens held at the
    market's address. Trading, margin and liquidation auctions are not
    modelled; balances are credited and moved directly.
    """

    def __init__(self, quote_asset, address="market:ETH-USD", liquidation_authority=None,
                 leveraged_notional_value=0):
        self.address = address
        self._quote_asset = quote_asset
        self._liquidation_authority = liquidation_authority or f"{address}/liquidation"
        self._leveraged_notional_value = leveraged_notional_value

        # Mapping of account addresses to settled quote balances
        self.accounts = {}

    def quote_asset(self):
        return self._quote_asset

    def leveraged_notional_value(self):
        """Returns the market's aggregate leveraged notional value."""
        return self._leveraged_notional_value

    def set_leveraged_notional_value(self, value):
        self._leveraged_notional_value = value

    def liquidation_authority(self):
        """Returns the address allowed to drain the insurance pool."""
        return self._liquidation_authority

    def set_liquidation_authority(self, authority):
        self._liquidation_authority = authority

    def get_settled_pool_balance(self, account):
        """Returns the quote balance the market holds for the account."""
        return self.accounts.get(account, 0)

    def credit_account(self, account, amount):
        """
        Books a settled quote amount (fees, liquidation proceeds) to an account.

        The quote tokens must already be held by the market so that every
        account balance stays withdrawable.
        """
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")
        owed = sum(self.accounts.values()) + amount
        if self._quote_asset.balance_of(self.address) < owed:
            raise ValueError("Market does not hold enough quote tokens to back the credit")
        self.accounts[account] = self.accounts.get(account, 0) + amount
        logger.debug("market %s credited %s with %d", self.address, account, amount)

    def deposit(self, sender, amount):
        """
        Pulls quote tokens from sender into the market and credits its account.
        The sender must have approved the market for the amount.
        """
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")
        self._quote_asset.transfer_from(self.address, sender, self.address, amount)
        self.accounts[sender] = self.accounts.get(sender, 0) + amount

    def withdraw(self, sender, amount):
        """Sends quote tokens from sender's market account back to sender."""
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")
        balance = self.accounts.get(sender, 0)
        if balance < amount:
            raise ValueError("Market: withdraw exceeds account balance")
        self.accounts[sender] = balance - amount
        self._quote_asset.transfer(self.address, sender, amount)

    def transfer_balance(self, from_account, to_account, amount):
        """
        Moves settled quote balance between accounts, as the liquidation
        process does when it spends funds drained from the insurance pool.
        """
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")
        balance = self.accounts.get(from_account, 0)
        if balance < amount:
            raise ValueError("Market: transfer exceeds account balance")
        self.accounts[from_account] = balance - amount
        self.accounts[to_account] = self.accounts.get(to_account, 0) + amount
