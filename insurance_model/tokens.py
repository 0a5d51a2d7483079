"""
Token Models for the Insurance Pool.

This module simulates the two ERC20 style ledgers the insurance pool works
with: the collateral token depositors stake (also the market's quote asset)
and the pool share token the pool mints against public collateral.
"""


def _check_amount(amount):
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"Token amounts must be integers, got {amount!r}")
    if amount < 0:
        raise ValueError("Amount must not be negative")


class Token:
    """
    Fungible balance ledger with mint, burn and transfer.
    """

    def __init__(self, name, symbol, address=None):
        self.name = name
        self.symbol = symbol
        self.address = address or f"token:{symbol}"

        # Total token supply
        self.total_supply = 0

        # Mapping of addresses to token balances
        self.balances = {}

    def balance_of(self, account):
        """Returns the token balance of the given account."""
        return self.balances.get(account, 0)

    def transfer(self, sender, recipient, amount):
        """
        Transfers tokens from sender to recipient.

        Args:
            sender: Address sending the tokens
            recipient: Address receiving the tokens
            amount: Amount of tokens to transfer

        Returns:
            True if successful
        """
        _check_amount(amount)

        sender_balance = self.balances.get(sender, 0)
        if sender_balance < amount:
            raise ValueError("ERC20: transfer amount exceeds balance")

        self.balances[sender] = sender_balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        return True

    def _mint(self, recipient, amount):
        _check_amount(amount)
        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        self.total_supply += amount

    def _burn(self, from_account, amount):
        _check_amount(amount)
        from_balance = self.balances.get(from_account, 0)
        if from_balance < amount:
            raise ValueError("ERC20: burn amount exceeds balance")
        self.balances[from_account] = from_balance - amount
        self.total_supply -= amount

    def snapshot(self):
        """Returns a copy of the ledger state for later restore()."""
        return self.total_supply, dict(self.balances)

    def restore(self, state):
        """Restores ledger state captured by snapshot()."""
        self.total_supply, balances = state
        self.balances = dict(balances)


class CollateralToken(Token):
    """
    Settlement token accepted as collateral, with ERC20 allowances.

    Anyone may mint in this model; it stands in for an external stablecoin
    whose issuance is out of scope.
    """

    def __init__(self, name="Test USD", symbol="TUSD", address=None):
        super().__init__(name, symbol, address)

        # owner -> spender -> remaining allowance
        self.allowances = {}

    def mint(self, recipient, amount):
        self._mint(recipient, amount)
        return True

    def allowance(self, owner, spender):
        return self.allowances.get(owner, {}).get(spender, 0)

    def approve(self, owner, spender, amount):
        """Sets the amount spender may move out of owner's balance."""
        _check_amount(amount)
        self.allowances.setdefault(owner, {})[spender] = amount
        return True

    def transfer_from(self, spender, sender, recipient, amount):
        """
        Moves tokens on behalf of sender using spender's allowance.

        Raises:
            ValueError: If the allowance or the sender balance is too low
        """
        _check_amount(amount)
        allowed = self.allowance(sender, spender)
        if allowed < amount:
            raise ValueError("ERC20: transfer amount exceeds allowance")
        self.transfer(sender, recipient, amount)
        self.allowances[sender][spender] = allowed - amount
        return True


class PoolShareToken(Token):
    """
    Pool share token representing a claim on an insurance pool's public
    collateral. Only the owning pool may mint or burn.
    """

    def __init__(self, owner, name, symbol, address=None):
        super().__init__(name, symbol, address)

        # Owner of the contract, the insurance pool address
        self.owner = owner

    def mint(self, caller, recipient, amount):
        """
        Mints new shares to the recipient account.
        Only callable by the owning pool.
        """
        if caller != self.owner:
            raise ValueError("Ownable: caller is not the owner")
        self._mint(recipient, amount)
        return True

    def burn(self, caller, from_account, amount):
        """
        Burns shares from the given account.
        Only callable by the owning pool.
        """
        if caller != self.owner:
            raise ValueError("Ownable: caller is not the owner")
        self._burn(from_account, amount)
        return True
