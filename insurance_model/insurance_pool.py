"""
Insurance Pool Model.

This module simulates the Insurance contract that backstops a single
perpetuals market. The pool holds two buckets of the market's quote token:

- buffer collateral, a protocol-owned reserve filled from settlement flows
  the market owes the pool
- public collateral, deposited by users against pool share tokens

When a liquidation leaves a shortfall, the market's liquidation authority
drains the pool, buffer first, and the drained collateral is deposited back
into the market.
"""

import logging
from contextlib import contextmanager

from .config import PoolConfig
from .errors import (
    AssetMismatch,
    InsufficientBalance,
    InsufficientFunds,
    InvalidAmount,
    InvariantViolation,
    ReentrantCall,
    Unauthorized,
)
from .pool_math import (
    calc_mint_amount,
    calc_withdraw_amount,
    calculate_immediate_withdrawal_fee,
    get_pool_funding_rate,
    get_pool_target,
)
from .tokens import PoolShareToken

logger = logging.getLogger(__name__)


def _require_amount(amount, allow_zero=False):
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidAmount(f"expected an integer WAD amount, got {amount!r}")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidAmount(f"got {amount}")


class InsurancePool:
    """
    Simulates the Insurance contract of one market.
    """

    def __init__(self, market, collateral_asset, address=None, config=None, fee_curve=None):
        """
        Args:
            market: The market this pool insures
            collateral_asset: Token accepted as collateral, must be the
                market's quote asset
            address: Address of the pool on the token ledgers
            config: PoolConfig overrides
            fee_curve: Pricing curve for immediate withdrawals, defaults to
                calculate_immediate_withdrawal_fee

        Raises:
            AssetMismatch: If collateral_asset is not the market's quote asset
        """
        quote_asset = market.quote_asset()
        if quote_asset.address != collateral_asset.address:
            raise AssetMismatch(f"market quotes in {quote_asset.address}, got {collateral_asset.address}")

        # External contracts
        self.market = market
        self.collateral_asset = collateral_asset

        self.address = address or f"insurance:{market.address}"
        self.config = config or PoolConfig()
        self.fee_curve = fee_curve or calculate_immediate_withdrawal_fee

        # Pool share token, owned and minted by this pool
        self.token = PoolShareToken(
            owner=self.address,
            name=f"Insurance Pool Token {market.address}",
            symbol="IPT",
            address=f"{self.address}/token",
        )

        # Protocol-owned reserve, not represented by shares
        self._buffer_collateral_amount = 0

        # Depositor-owned reserve, backs the share token supply
        self._public_collateral_amount = 0

        self._entered = False

        # Settled funds pulled from the market during the current operation
        self._collected = 0

    @property
    def buffer_collateral_amount(self):
        return self._buffer_collateral_amount

    @property
    def public_collateral_amount(self):
        return self._public_collateral_amount

    def get_pool_holdings(self):
        """Returns the total collateral booked by the pool."""
        return self._buffer_collateral_amount + self._public_collateral_amount

    def get_pool_user_balance(self, user):
        """Returns the pool share balance of the given user."""
        return self.token.balance_of(user)

    def get_pool_target(self):
        """Returns the pool target, 1% of the market's leveraged notional value."""
        return get_pool_target(self.market.leveraged_notional_value())

    def get_pool_funding_rate(self):
        """Returns the pool's funding rate contribution for the market."""
        leveraged_notional_value = self.market.leveraged_notional_value()
        target = get_pool_target(leveraged_notional_value)
        return get_pool_funding_rate(target, self.get_pool_holdings(), leveraged_notional_value)

    def get_withdrawal_quote(self, shares):
        """
        Previews a withdrawal of the given shares against the current state.

        Settled funds the market has not delivered yet are not included.

        Returns:
            Tuple of (collateral released, fee charged)
        """
        _require_amount(shares, allow_zero=True)
        return self._quote_withdrawal(shares)

    def deposit(self, sender, amount):
        """
        Deposits collateral into the public bucket in exchange for pool shares.

        Args:
            sender: Address of the depositor
            amount: Collateral to deposit, must be approved for the pool

        Returns:
            Number of pool shares minted

        Raises:
            InvalidAmount: If amount is not positive
            InsufficientFunds: If sender's balance or allowance is too low
        """
        _require_amount(amount)

        with self._transaction():
            balance = self.collateral_asset.balance_of(sender)
            allowance = self.collateral_asset.allowance(sender, self.address)
            if balance < amount or allowance < amount:
                logger.warning(
                    "deposit of %d by %s rejected: balance %d, allowance %d",
                    amount, sender, balance, allowance,
                )
                raise InsufficientFunds(f"balance {balance}, allowance {allowance}, needed {amount}")

            owed = self._book_settled_funds()

            supply, public = self.token.total_supply, self._public_collateral_amount
            if supply == 0 or public == 0:
                # Nothing to preserve a ratio against, mint at 1:1
                shares = amount
            else:
                shares = calc_mint_amount(supply, public, amount)
            if shares == 0:
                raise InvalidAmount(f"deposit of {amount} is worth less than one share unit")

            self._public_collateral_amount += amount
            self.token.mint(self.address, sender, shares)

            self._collect_settled_funds(owed)
            try:
                self.collateral_asset.transfer_from(self.address, sender, self.address, amount)
            except ValueError as exc:
                raise InsufficientFunds(str(exc)) from exc

        logger.info("deposit: %s staked %d for %d shares", sender, amount, shares)
        return shares

    def withdraw(self, sender, shares):
        """
        Burns pool shares and sends the sender their part of public collateral.

        When the pool charges the immediate withdrawal fee, the fee is kept
        in the public bucket for the remaining depositors.

        Args:
            sender: Address of the share holder
            shares: Number of pool shares to redeem

        Returns:
            Collateral paid out to the sender

        Raises:
            InvalidAmount: If shares is not positive
            InsufficientBalance: If sender holds fewer shares, or the shares
                redeem for no collateral
        """
        _require_amount(shares)

        with self._transaction():
            balance = self.token.balance_of(sender)
            if balance < shares:
                logger.warning("withdraw of %d shares by %s rejected: balance %d", shares, sender, balance)
                raise InsufficientBalance(f"holds {balance} shares, asked for {shares}")

            owed = self._book_settled_funds()

            collateral, fee = self._quote_withdrawal(shares)
            if collateral == 0:
                logger.warning("withdraw of %d shares by %s rejected: no public collateral to pay", shares, sender)
                raise InsufficientBalance(f"{shares} shares redeem for no public collateral")
            payout = collateral - fee

            self.token.burn(self.address, sender, shares)
            self._public_collateral_amount -= payout

            self._collect_settled_funds(owed)
            if payout > 0:
                self.collateral_asset.transfer(self.address, sender, payout)

        logger.info("withdraw: %s burnt %d shares for %d (fee %d)", sender, shares, payout, fee)
        return payout

    def update_pool_amount(self):
        """
        Pulls the quote balance the market has settled to the pool.

        Returns:
            Amount pulled, 0 if there was nothing to pull
        """
        with self._transaction():
            owed = self._book_settled_funds()
            self._collect_settled_funds(owed)
        return owed

    def drain_pool(self, sender, amount):
        """
        Drains collateral to cover a liquidation shortfall.

        Buffer collateral is used first. Public collateral is only drawn
        down to the configured floor when it started at or above it.
        The drained collateral is deposited into the market on the pool's
        behalf.

        Args:
            sender: Caller, must be the market's liquidation authority
            amount: Amount of collateral requested

        Returns:
            Amount actually drained, possibly less than requested

        Raises:
            Unauthorized: If sender is not the liquidation authority
            InvalidAmount: If amount is negative
        """
        authority = self.market.liquidation_authority()
        if sender != authority:
            logger.warning("drain of %r by %s rejected: liquidation authority is %s", amount, sender, authority)
            raise Unauthorized(f"{sender} is not {authority}")
        _require_amount(amount, allow_zero=True)

        with self._transaction():
            from_buffer = min(amount, self._buffer_collateral_amount)
            remainder = amount - from_buffer

            from_public = 0
            if remainder > 0:
                public = self._public_collateral_amount
                floor = self.config.public_floor
                if public >= floor:
                    drainable = public - floor
                elif self.config.drain_below_floor:
                    drainable = public
                else:
                    drainable = 0
                from_public = min(remainder, drainable)

            self._buffer_collateral_amount -= from_buffer
            self._public_collateral_amount -= from_public
            drained = from_buffer + from_public

            if drained > 0:
                allowance = self.collateral_asset.allowance(self.address, self.market.address)
                self.collateral_asset.approve(self.address, self.market.address, drained)
                try:
                    self.market.deposit(self.address, drained)
                except Exception:
                    self.collateral_asset.approve(self.address, self.market.address, allowance)
                    raise

        logger.info(
            "drain: requested %d, drained %d (buffer %d, public %d)",
            amount, drained, from_buffer, from_public,
        )
        return drained

    def _book_settled_funds(self):
        """
        Splits the market's settled balance for the pool between the buckets.

        Only the bookkeeping is done here; the tokens are collected by
        _collect_settled_funds once the calling operation has passed its
        checks.

        Returns:
            Amount owed by the market, 0 if there is nothing to pull
        """
        owed = self.market.get_settled_pool_balance(self.address)
        if not isinstance(owed, int) or isinstance(owed, bool):
            raise InvalidAmount(f"market reported settled balance {owed!r}")
        if owed <= 0:
            return 0

        # Split in proportion to buffer:public before the pull
        total = self._buffer_collateral_amount + self._public_collateral_amount
        if total == 0:
            to_public = 0
        else:
            to_public = owed * self._public_collateral_amount // total
        to_buffer = owed - to_public

        self._buffer_collateral_amount += to_buffer
        self._public_collateral_amount += to_public

        logger.info("pull: %d from market (buffer +%d, public +%d)", owed, to_buffer, to_public)
        return owed

    def _collect_settled_funds(self, owed):
        if owed > 0:
            self.market.withdraw(self.address, owed)
            self._collected += owed

    def _return_collected_funds(self):
        # Hands pulled tokens back to the market account they came from
        collected, self._collected = self._collected, 0
        if collected > 0:
            held = self.collateral_asset.balance_of(self.address)
            if held < collected:
                logger.error("cannot return %d collected from market, pool holds %d", collected, held)
                return
            logger.warning("returning %d collected from market after a failed operation", collected)
            self.collateral_asset.approve(self.address, self.market.address, collected)
            self.market.deposit(self.address, collected)

    def _quote_withdrawal(self, shares):
        public = self._public_collateral_amount
        collateral = calc_withdraw_amount(self.token.total_supply, public, shares)
        fee = 0
        if self.config.charge_withdrawal_fee and collateral > 0:
            fee = self.fee_curve(self.get_pool_target(), public, collateral, collateral)
            fee = min(max(fee, 0), collateral)
        return collateral, fee

    @contextmanager
    def _transaction(self):
        """
        Runs a mutating operation atomically.

        Rejects re-entrant calls and checks conservation on success. If the
        operation raises, the pool's bookkeeping and share ledger are restored
        and settled funds already pulled from the market are paid back to it.
        """
        if self._entered:
            raise ReentrantCall()
        self._entered = True
        self._collected = 0
        saved = (
            self._buffer_collateral_amount,
            self._public_collateral_amount,
            self.token.snapshot(),
        )
        try:
            yield
            self._check_invariants()
        except Exception:
            self._buffer_collateral_amount, self._public_collateral_amount, token_state = saved
            self.token.restore(token_state)
            self._return_collected_funds()
            raise
        finally:
            self._collected = 0
            self._entered = False

    def _check_invariants(self):
        if not self.config.check_invariants:
            return
        buffer, public = self._buffer_collateral_amount, self._public_collateral_amount
        custodied = self.collateral_asset.balance_of(self.address)
        logger.debug("invariants: buffer %d, public %d, custodied %d", buffer, public, custodied)
        if buffer < 0 or public < 0:
            raise InvariantViolation(f"negative bucket: buffer {buffer}, public {public}")
        if custodied < buffer + public:
            raise InvariantViolation(f"custodied {custodied} < booked {buffer + public}")
        if self.token.total_supply < 0:
            raise InvariantViolation(f"negative share supply {self.token.total_supply}")
