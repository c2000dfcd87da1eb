"""LCE (Liquidity-Cost-Efficiency) scoring and ranking.

Implements a transparent, fixed weighted sum of three step-function
sub-scores, each on a 0-100 scale:

    liquidity (40%)  daily volume
    cost      (35%)  bid/ask spread as a percentage of premium
    value     (25%)  time value relative to premium
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, List

from ..models.option import NormalizedOpportunity

logger = logging.getLogger("lce_scanner.scorer")

WEIGHT_LIQUIDITY = 0.40
WEIGHT_COST = 0.35
WEIGHT_VALUE = 0.25

# (minimum volume, sub-score), checked top-down
LIQUIDITY_STEPS = ((1000, 100), (500, 75), (100, 50), (50, 25))

# (maximum spread %, sub-score), checked top-down
COST_STEPS = ((3, 100), (5, 80), (10, 60), (15, 40), (25, 20))


@dataclass(frozen=True)
class LCEBreakdown:
    """Sub-scores behind a final LCE score."""

    liquidity: float
    cost: float
    value: float
    total: int


def liquidity_subscore(volume: int) -> float:
    """Step score for daily volume: 1000+ -> 100, 500+ -> 75, 100+ -> 50, 50+ -> 25."""
    for min_volume, score in LIQUIDITY_STEPS:
        if volume >= min_volume:
            return float(score)
    return 0.0


def cost_subscore(spread_pct: float) -> float:
    """Step score for spread as % of premium: <=3 -> 100 ... <=25 -> 20, wider -> 0."""
    for max_spread, score in COST_STEPS:
        if spread_pct <= max_spread:
            return float(score)
    return 0.0


def value_subscore(volatility: float, time_value: float, premium: float) -> float:
    """Time value as % of premium, capped at 100; zero without IV and time value.

    Raises:
        ZeroDivisionError: If time value and IV are present but premium is zero
    """
    if volatility > 0 and time_value > 0:
        return min(100.0, (time_value / premium) * 100.0)
    return 0.0


def score_breakdown(opportunity: NormalizedOpportunity) -> LCEBreakdown:
    """Compute all three sub-scores and the clamped, rounded total.

    Raises:
        ArithmeticError, ValueError: On degenerate inputs (see score_lce)
    """
    liquidity = liquidity_subscore(opportunity.volume)
    cost = cost_subscore(opportunity.spread_pct)
    value = value_subscore(opportunity.volatility, opportunity.time_value, opportunity.premium)

    weighted = WEIGHT_LIQUIDITY * liquidity + WEIGHT_COST * cost + WEIGHT_VALUE * value
    # Round half up, not to even
    total = math.floor(weighted + 0.5)

    return LCEBreakdown(
        liquidity=liquidity,
        cost=cost,
        value=value,
        total=max(0, min(100, total)),
    )


def score_lce(opportunity: NormalizedOpportunity) -> int:
    """Compute the LCE score for an opportunity.

    Pure and deterministic. Arithmetic failures (zero premium with time
    value, NaN inputs) score 0 instead of failing the scan.

    Args:
        opportunity: Normalized opportunity to score

    Returns:
        Integer score in [0, 100]
    """
    try:
        return score_breakdown(opportunity).total
    except (ArithmeticError, ValueError, TypeError) as e:
        logger.debug("Scoring failed for %s: %s", opportunity.contract_id, e)
        return 0


def rescore(opportunity: NormalizedOpportunity) -> NormalizedOpportunity:
    """Return a new opportunity with lce_score recomputed."""
    return replace(opportunity, lce_score=score_lce(opportunity))


def rank_opportunities(
    opportunities: Iterable[NormalizedOpportunity],
    top_n: int | None = None,
) -> List[NormalizedOpportunity]:
    """Sort opportunities by LCE score (highest first), optionally truncating.

    The sort is stable, so equal scores keep their input order.
    """
    ranked = sorted(opportunities, key=lambda o: o.lce_score, reverse=True)

    if top_n is not None:
        return ranked[:top_n]
    else:
        return ranked
