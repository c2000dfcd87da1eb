"""Position sizing against the per-trade and portfolio risk budgets.

A long option's maximum loss is the premium paid, so risk per contract is
premium x 100 shares.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from ..data.normalizer import RiskConfig
from ..models.option import NormalizedOpportunity

logger = logging.getLogger("lce_scanner.position_sizing")

CONTRACT_MULTIPLIER = 100


@dataclass(frozen=True)
class Allocation:
    """Contracts assigned to one opportunity and the dollars they put at risk."""

    opportunity: NormalizedOpportunity
    contracts: int
    risk_dollars: float


def risk_per_contract(opportunity: NormalizedOpportunity) -> float:
    """Dollars at risk buying one contract at the premium."""
    return opportunity.premium * CONTRACT_MULTIPLIER


def max_contracts(opportunity: NormalizedOpportunity, config: RiskConfig) -> int:
    """Largest position that keeps risk within max_risk_per_trade.

    Example:
        >>> # premium $2.25 -> $225 per contract, $1000 budget -> 4 contracts
        >>> max_contracts(opp, RiskConfig(max_risk_per_trade=1000))
        4
    """
    per_contract = risk_per_contract(opportunity)
    if per_contract <= 0:
        logger.warning("Invalid premium %.2f for %s", opportunity.premium, opportunity.contract_id)
        return 0

    return max(0, int(config.max_risk_per_trade // per_contract))


def available_risk(config: RiskConfig, committed: float = 0.0) -> float:
    """Portfolio risk budget left after `committed` dollars already at risk."""
    return max(0.0, config.portfolio_risk_limit - committed)


def allocate_portfolio(
    opportunities: Iterable[NormalizedOpportunity],
    config: RiskConfig,
    committed: float = 0.0,
) -> Tuple[List[Allocation], float]:
    """Size opportunities in rank order until the portfolio budget runs out.

    Each candidate gets up to max_contracts(), reduced to what the remaining
    portfolio budget can cover; candidates that can't afford one contract
    are skipped.

    Args:
        opportunities: Candidates, best first
        config: Risk configuration with per-trade and portfolio limits
        committed: Dollars already at risk in open positions

    Returns:
        Tuple of (allocations, remaining_risk_dollars)
    """
    remaining = available_risk(config, committed)
    allocations = []

    for opp in opportunities:
        per_contract = risk_per_contract(opp)
        if per_contract <= 0:
            continue

        contracts = min(max_contracts(opp, config), int(remaining // per_contract))
        if contracts <= 0:
            continue

        risk = contracts * per_contract
        allocations.append(Allocation(opportunity=opp, contracts=contracts, risk_dollars=risk))
        remaining -= risk

    logger.info(
        "Allocated %d positions, $%.2f at risk, $%.2f of portfolio budget left",
        len(allocations), sum(a.risk_dollars for a in allocations), remaining
    )
    return allocations, remaining
