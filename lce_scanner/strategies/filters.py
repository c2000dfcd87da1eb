"""Strategy filters applied to normalized opportunities before ranking.

Each strategy is a fixed boolean predicate over one opportunity and the
active risk configuration. Unknown strategy ids pass everything through.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from ..data.normalizer import RiskConfig
from ..models.option import NormalizedOpportunity
from ..scoring.scorer import rank_opportunities

logger = logging.getLogger("lce_scanner.strategies")

MAX_STRATEGY_RESULTS = 50


class Strategy(str, Enum):
    """Closed set of scan strategies."""

    HIGH_MOMENTUM = "HIGH_MOMENTUM"
    HIGH_VALUE = "HIGH_VALUE"
    VOLATILITY_EXPANSION = "VOLATILITY_EXPANSION"
    EARNINGS_PLAYS = "EARNINGS_PLAYS"
    TECHNICAL_SETUPS = "TECHNICAL_SETUPS"

    @property
    def label(self) -> str:
        return STRATEGY_LABELS[self]


STRATEGY_LABELS = {
    Strategy.HIGH_MOMENTUM: "High Momentum",
    Strategy.HIGH_VALUE: "High Value",
    Strategy.VOLATILITY_EXPANSION: "Volatility Expansion",
    Strategy.EARNINGS_PLAYS: "Earnings Plays",
    Strategy.TECHNICAL_SETUPS: "Technical Setups",
}

Predicate = Callable[[NormalizedOpportunity, RiskConfig], bool]


def is_high_momentum(opp: NormalizedOpportunity, config: RiskConfig) -> bool:
    """|delta| > 0.4 with volume of at least 500."""
    return abs(opp.delta) > 0.4 and opp.volume >= 500


def is_high_value(opp: NormalizedOpportunity, config: RiskConfig) -> bool:
    """LCE score of 70+ within the premium cap."""
    return opp.lce_score >= 70 and opp.premium <= config.max_option_price


def is_volatility_expansion(opp: NormalizedOpportunity, config: RiskConfig) -> bool:
    """Volatility above 0.3 with gamma above 0.01."""
    return opp.volatility > 0.3 and opp.gamma > 0.01


def is_earnings_play(opp: NormalizedOpportunity, config: RiskConfig) -> bool:
    """Two weeks or less to expiry with volume of at least 1000."""
    return opp.days_to_expiry <= 14 and opp.volume >= 1000


def is_technical_setup(opp: NormalizedOpportunity, config: RiskConfig) -> bool:
    """|delta| >= 0.3 with theta below -0.05."""
    return abs(opp.delta) >= 0.3 and opp.theta < -0.05


STRATEGY_PREDICATES: Dict[Strategy, Predicate] = {
    Strategy.HIGH_MOMENTUM: is_high_momentum,
    Strategy.HIGH_VALUE: is_high_value,
    Strategy.VOLATILITY_EXPANSION: is_volatility_expansion,
    Strategy.EARNINGS_PLAYS: is_earnings_play,
    Strategy.TECHNICAL_SETUPS: is_technical_setup,
}


def resolve_strategy(strategy: "Strategy | str | None") -> Optional[Strategy]:
    """Look up a strategy by enum member or case-insensitive id.

    Returns:
        Strategy, or None when the id is not recognized
    """
    if isinstance(strategy, Strategy):
        return strategy
    if not strategy:
        return None
    try:
        return Strategy(str(strategy).strip().upper())
    except ValueError:
        return None


def strategy_label(strategy: "Strategy | str | None") -> str:
    """Human readable name; unknown ids are shown as given."""
    resolved = resolve_strategy(strategy)
    if resolved is None:
        return str(strategy or "All Opportunities")
    return resolved.label


def filter_opportunities(
    opportunities: Iterable[NormalizedOpportunity],
    strategy: "Strategy | str | None",
    config: RiskConfig,
    top_n: int = MAX_STRATEGY_RESULTS,
) -> List[NormalizedOpportunity]:
    """Apply a strategy predicate, then rank by LCE score and keep the top N.

    Args:
        opportunities: Normalized opportunities for one or more symbols
        strategy: Strategy member or id; unknown ids apply no filtering
        config: Active risk configuration
        top_n: Maximum results returned (default 50)

    Returns:
        Matching opportunities sorted by lce_score descending
    """
    opportunities = list(opportunities)
    resolved = resolve_strategy(strategy)

    if resolved is None:
        logger.debug("Unrecognized strategy %r, passing %d opportunities through", strategy, len(opportunities))
        matched = opportunities
    else:
        predicate = STRATEGY_PREDICATES[resolved]
        matched = [opp for opp in opportunities if predicate(opp, config)]
        logger.debug("%s matched %d/%d opportunities", resolved.value, len(matched), len(opportunities))

    return rank_opportunities(matched, top_n=top_n)
