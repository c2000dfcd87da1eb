"""Contract normalization: raw provider contracts -> scored opportunities.

Applies the risk window (days to expiry, premium cap, minimum volume)
and attaches the LCE score and liquidity tier to every retained contract.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Mapping, Optional

from ..models.option import LiquidityTier, NormalizedOpportunity, RawOptionChain, RawOptionContract
from ..scoring.scorer import rescore
from ..utils.error_handling import ConfigurationError
from .chain_parser import parse_option_chain

logger = logging.getLogger("lce_scanner.normalizer")

HIGH_LIQUIDITY_VOLUME = 1000
MEDIUM_LIQUIDITY_VOLUME = 500

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class RiskConfig:
    """Read-only risk settings applied to every scan.

    Attributes:
        max_option_price: Maximum premium (midpoint) per share in dollars
        min_volume: Minimum daily contract volume
        max_spread_percent: Widest acceptable bid/ask spread, % of premium
        min_days_to_expiry: Shortest expiration window in days
        max_days_to_expiry: Longest expiration window in days
        portfolio_risk_limit: Total dollars at risk across open trades
        max_risk_per_trade: Dollars at risk allowed on a single trade
    """

    max_option_price: float = 500.0
    min_volume: int = 500
    max_spread_percent: float = 10.0
    min_days_to_expiry: int = 7
    max_days_to_expiry: int = 45
    portfolio_risk_limit: float = 5000.0
    max_risk_per_trade: float = 1000.0

    def __post_init__(self):
        if self.max_option_price <= 0:
            raise ConfigurationError(f"max_option_price must be positive, got {self.max_option_price}")
        if self.min_volume < 0:
            raise ConfigurationError(f"min_volume cannot be negative, got {self.min_volume}")
        if self.max_spread_percent < 0:
            raise ConfigurationError(f"max_spread_percent cannot be negative, got {self.max_spread_percent}")
        if self.min_days_to_expiry < 0:
            raise ConfigurationError(f"min_days_to_expiry cannot be negative, got {self.min_days_to_expiry}")
        if self.min_days_to_expiry > self.max_days_to_expiry:
            raise ConfigurationError(
                f"min_days_to_expiry ({self.min_days_to_expiry}) exceeds "
                f"max_days_to_expiry ({self.max_days_to_expiry})"
            )
        if self.portfolio_risk_limit < 0 or self.max_risk_per_trade < 0:
            raise ConfigurationError("Risk limits cannot be negative")

    # Keys accepted by from_dict: snake_case attribute or the camelCase used by the dashboard
    _ALIASES = {
        'maxOptionPrice': 'max_option_price',
        'minVolume': 'min_volume',
        'maxSpreadPercent': 'max_spread_percent',
        'minDaysToExpiry': 'min_days_to_expiry',
        'maxDaysToExpiry': 'max_days_to_expiry',
        'portfolioRiskLimit': 'portfolio_risk_limit',
        'maxRiskPerTrade': 'max_risk_per_trade',
    }

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "RiskConfig":
        """Create RiskConfig from dictionary (e.g., from YAML).

        Unknown keys are ignored; missing keys keep their defaults.

        Raises:
            ConfigurationError: If a value has the wrong type or is out of range
        """
        if config is None:
            raise ConfigurationError("Risk configuration is missing")

        converters = {
            'max_option_price': float,
            'min_volume': int,
            'max_spread_percent': float,
            'min_days_to_expiry': int,
            'max_days_to_expiry': int,
            'portfolio_risk_limit': float,
            'max_risk_per_trade': float,
        }
        kwargs: Dict[str, Any] = {}
        for key, value in config.items():
            name = cls._ALIASES.get(key, key)
            if name not in converters:
                continue
            try:
                kwargs[name] = converters[name](value)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid value for {key}: {value!r}")
        return cls(**kwargs)


def classify_liquidity(volume: int) -> LiquidityTier:
    """Map daily volume to a liquidity tier (>=1000 HIGH, >=500 MEDIUM, else LOW)."""
    if volume >= HIGH_LIQUIDITY_VOLUME:
        return "HIGH"
    if volume >= MEDIUM_LIQUIDITY_VOLUME:
        return "MEDIUM"
    return "LOW"


def days_to_expiry(expiration: date, now: Optional[datetime] = None) -> int:
    """Whole days from now until expiration (midnight UTC), rounded up."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    expires_at = datetime.combine(expiration, time.min, tzinfo=timezone.utc)
    return math.ceil((expires_at - now).total_seconds() / SECONDS_PER_DAY)


def normalize_contract(
    contract: RawOptionContract,
    dte: int,
    config: RiskConfig,
) -> Optional[NormalizedOpportunity]:
    """Build a scored opportunity from one raw contract.

    Returns:
        NormalizedOpportunity, or None if the premium is zero or above the cap
    """
    premium = (contract.bid + contract.ask) / 2.0
    if premium <= 0 or premium > config.max_option_price:
        return None

    opportunity = NormalizedOpportunity(
        symbol=contract.symbol,
        contract_type=contract.contract_type,
        strike=contract.strike,
        expiration=contract.expiration,
        days_to_expiry=dte,
        premium=premium,
        bid=contract.bid,
        ask=contract.ask,
        volume=contract.total_volume,
        open_interest=contract.open_interest,
        delta=contract.delta,
        gamma=contract.gamma,
        theta=contract.theta,
        vega=contract.vega,
        volatility=contract.volatility,
        time_value=contract.time_value,
        liquidity=classify_liquidity(contract.total_volume),
        description=contract.description,
    )
    return rescore(opportunity)


def normalize_chain(
    chain: RawOptionChain,
    config: RiskConfig,
    now: Optional[datetime] = None,
) -> List[NormalizedOpportunity]:
    """Normalize a decoded chain into opportunities that satisfy the risk window.

    Args:
        chain: Flat chain for one symbol
        config: Active risk configuration
        now: Scan clock (defaults to current UTC time)

    Returns:
        Opportunities in chain order (calls, then puts)
    """
    if now is None:
        now = datetime.now(timezone.utc)

    dte_by_expiration: Dict[date, int] = {}
    normalized = []
    reject_reasons: Dict[str, int] = {}

    for contract in chain.contracts:
        dte = dte_by_expiration.get(contract.expiration)
        if dte is None:
            dte = days_to_expiry(contract.expiration, now)
            dte_by_expiration[contract.expiration] = dte

        if dte < config.min_days_to_expiry or dte > config.max_days_to_expiry:
            reject_reasons['outside_dte_window'] = reject_reasons.get('outside_dte_window', 0) + 1
            continue

        opportunity = normalize_contract(contract, dte, config)
        if opportunity is None:
            reject_reasons['premium'] = reject_reasons.get('premium', 0) + 1
            continue

        normalized.append(opportunity)

    retained = [opp for opp in normalized if opp.volume >= config.min_volume]
    if len(retained) < len(normalized):
        reject_reasons['low_volume'] = len(normalized) - len(retained)

    logger.info(
        "%s: %d/%d contracts passed normalization",
        chain.symbol, len(retained), len(chain.contracts)
    )
    if reject_reasons:
        reasons = [f"{count} ({reason})" for reason, count in reject_reasons.items()]
        logger.debug("Rejected: %s", ", ".join(reasons))

    return retained


def normalize_payload(
    payload: Mapping[str, Any],
    symbol: str,
    config: RiskConfig,
    now: Optional[datetime] = None,
) -> List[NormalizedOpportunity]:
    """Decode a provider payload and normalize it in one step.

    Raises:
        NoDataError: If the payload carries neither calls nor puts
        DataValidationError: If the payload is not a JSON object
    """
    return normalize_chain(parse_option_chain(payload, symbol), config, now)
