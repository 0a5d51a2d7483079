"""
Error types raised by the Insurance Pool model.

Every error carries a stable `reason` matching the revert string of the
contract it models, so callers can tell causes apart without parsing
free-form messages.
"""


class InsuranceError(ValueError):
    """Base class for rejected insurance pool actions."""

    reason = "INS: error"

    def __init__(self, detail=None):
        self.detail = detail
        message = self.reason if detail is None else f"{self.reason} ({detail})"
        super().__init__(message)


class InvalidAmount(InsuranceError):
    reason = "INS: amount <= 0"


class InsufficientBalance(InsuranceError):
    reason = "INS: balance < amount"


class InsufficientFunds(InsuranceError):
    reason = "INS: insufficient funds"


class Unauthorized(InsuranceError):
    reason = "INS: sender not LIQ contract"


class AssetMismatch(InsuranceError):
    reason = "INS: asset mismatch"


class DivisionByZero(InsuranceError):
    reason = "INS: division by zero"


class AlreadyExists(InsuranceError):
    reason = "INS: pool already exists"


class ReentrantCall(InsuranceError):
    reason = "INS: reentrant call"


class InvariantViolation(InsuranceError):
    reason = "INS: invariant violated"
