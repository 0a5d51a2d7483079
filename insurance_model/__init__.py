"""
Insurance Pool economic model for a perpetual futures market.

Simulates the per-market insurance fund: public deposits against pool
shares, a protocol-owned buffer filled from settlement flows, capped drains
by the liquidation process and the pool's funding rate signal.
"""

from .config import WAD, PoolConfig
from .errors import (
    AlreadyExists,
    AssetMismatch,
    DivisionByZero,
    InsufficientBalance,
    InsufficientFunds,
    InsuranceError,
    InvalidAmount,
    InvariantViolation,
    ReentrantCall,
    Unauthorized,
)
from .factory import InsurancePoolFactory
from .fixed_point import div_wad, from_wad, mul_wad, to_wad
from .insurance_pool import InsurancePool
from .market import Market, SimulatedMarket
from .tokens import CollateralToken, PoolShareToken

__all__ = [
    "WAD",
    "PoolConfig",
    "AlreadyExists",
    "AssetMismatch",
    "DivisionByZero",
    "InsufficientBalance",
    "InsufficientFunds",
    "InsuranceError",
    "InvalidAmount",
    "InvariantViolation",
    "ReentrantCall",
    "Unauthorized",
    "InsurancePoolFactory",
    "div_wad",
    "from_wad",
    "mul_wad",
    "to_wad",
    "InsurancePool",
    "Market",
    "SimulatedMarket",
    "CollateralToken",
    "PoolShareToken",
]
