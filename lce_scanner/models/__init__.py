"""Core data models for options opportunity scanning."""

from .option import (
    CONTRACT_TYPES,
    ContractType,
    LiquidityTier,
    NormalizedOpportunity,
    RawOptionChain,
    RawOptionContract,
)

__all__ = [
    "CONTRACT_TYPES",
    "ContractType",
    "LiquidityTier",
    "NormalizedOpportunity",
    "RawOptionChain",
    "RawOptionContract",
]
