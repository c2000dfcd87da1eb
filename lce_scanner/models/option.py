"""Core option contract data models."""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Literal

ContractType = Literal["CALL", "PUT"]
LiquidityTier = Literal["HIGH", "MEDIUM", "LOW"]

CONTRACT_TYPES: tuple = ("CALL", "PUT")


@dataclass(frozen=True)
class RawOptionContract:
    """A single contract quote as delivered by the market-data provider.

    Decoded once at the system boundary from the provider's nested
    expiration -> strike -> contract-array maps. Missing numeric fields are
    already defaulted to zero, so nothing downstream handles absence.
    """

    symbol: str
    contract_type: ContractType
    expiration: date
    expiration_key: str
    strike: float

    bid: float = 0.0
    ask: float = 0.0
    total_volume: int = 0
    open_interest: int = 0

    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    volatility: float = 0.0
    time_value: float = 0.0

    description: str | None = None


@dataclass
class RawOptionChain:
    """Flat option chain for one underlying symbol."""

    symbol: str
    contracts: List[RawOptionContract] = field(default_factory=list)
    underlying_price: float | None = None
    has_calls: bool = False
    has_puts: bool = False

    @property
    def calls(self) -> List[RawOptionContract]:
        return [c for c in self.contracts if c.contract_type == "CALL"]

    @property
    def puts(self) -> List[RawOptionContract]:
        return [c for c in self.contracts if c.contract_type == "PUT"]

    def __len__(self) -> int:
        return len(self.contracts)


@dataclass(frozen=True)
class NormalizedOpportunity:
    """A scored, filter-ready option contract.

    Immutable dataclass: re-scoring produces a new record via
    dataclasses.replace. Prices in dollars per share; premium is always the
    bid/ask midpoint.
    """

    symbol: str
    contract_type: ContractType
    strike: float
    expiration: date
    days_to_expiry: int

    premium: float
    bid: float
    ask: float
    volume: int
    open_interest: int

    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    volatility: float = 0.0
    time_value: float = 0.0

    lce_score: int = 0
    liquidity: LiquidityTier = "LOW"
    description: str | None = None

    @property
    def contract_id(self) -> str:
        """Stable display/de-duplication key: SYMBOL_TYPE_STRIKE_EXPIRATION."""
        return f"{self.symbol}_{self.contract_type}_{self.strike:g}_{self.expiration.isoformat()}"

    @property
    def spread(self) -> float:
        """Bid-ask spread in dollars."""
        return self.ask - self.bid

    @property
    def spread_pct(self) -> float:
        """Bid-ask spread as percentage of premium (22.2 = 22.2%).

        Returns 100 when premium is zero, i.e. maximally costly.
        """
        if self.premium <= 0:
            return 100.0
        return (self.spread / self.premium) * 100.0

    def __repr__(self) -> str:
        """Compact string representation for debugging."""
        return (f"NormalizedOpportunity({self.symbol} {self.strike:g}{self.contract_type[0]} "
                f"{self.expiration.isoformat()} ${self.premium:.2f} vol={self.volume} "
                f"LCE={self.lce_score} {self.liquidity})")
