"""Unit tests for LCE scoring and ranking."""

import pytest
from datetime import date

from lce_scanner.models.option import NormalizedOpportunity
from lce_scanner.scoring.scorer import (
    WEIGHT_COST,
    WEIGHT_LIQUIDITY,
    WEIGHT_VALUE,
    cost_subscore,
    liquidity_subscore,
    rank_opportunities,
    rescore,
    score_breakdown,
    score_lce,
    value_subscore,
)


def make_opportunity(
    volume: int = 1200,
    bid: float = 2.00,
    ask: float = 2.50,
    volatility: float = 0.0,
    time_value: float = 0.0,
    lce_score: int = 0,
    symbol: str = "SPY",
    strike: float = 450.0,
) -> NormalizedOpportunity:
    return NormalizedOpportunity(
        symbol=symbol,
        contract_type="CALL",
        strike=strike,
        expiration=date(2025, 1, 17),
        days_to_expiry=10,
        premium=(bid + ask) / 2,
        bid=bid,
        ask=ask,
        volume=volume,
        open_interest=1000,
        volatility=volatility,
        time_value=time_value,
        lce_score=lce_score,
    )


class TestWeights:
    """Test suite for score weights."""

    def test_weights_sum_to_one(self):
        assert abs(WEIGHT_LIQUIDITY + WEIGHT_COST + WEIGHT_VALUE - 1.0) < 1e-9

    def test_weight_values(self):
        assert WEIGHT_LIQUIDITY == 0.40
        assert WEIGHT_COST == 0.35
        assert WEIGHT_VALUE == 0.25


class TestLiquiditySubscore:
    """Test suite for the volume step function."""

    @pytest.mark.parametrize("volume,expected", [
        (1200, 100),
        (1000, 100),
        (999, 75),
        (500, 75),
        (499, 50),
        (100, 50),
        (99, 25),
        (50, 25),
        (49, 0),
        (0, 0),
    ])
    def test_steps(self, volume, expected):
        assert liquidity_subscore(volume) == expected


class TestCostSubscore:
    """Test suite for the spread step function."""

    @pytest.mark.parametrize("spread_pct,expected", [
        (0.0, 100),
        (3.0, 100),
        (3.01, 80),
        (5.0, 80),
        (10.0, 60),
        (15.0, 40),
        (22.2, 20),
        (25.0, 20),
        (25.01, 0),
        (100.0, 0),
    ])
    def test_steps(self, spread_pct, expected):
        assert cost_subscore(spread_pct) == expected

    def test_spread_scenario(self):
        """bid 2.00 / ask 2.50 -> premium 2.25, spread ≈22.2% -> cost sub-score 20."""
        opp = make_opportunity(bid=2.00, ask=2.50)

        assert opp.premium == 2.25
        assert abs(opp.spread_pct - 22.22) < 0.01
        assert cost_subscore(opp.spread_pct) == 20


class TestValueSubscore:
    """Test suite for the time value component."""

    def test_requires_volatility(self):
        assert value_subscore(volatility=0.0, time_value=1.0, premium=2.0) == 0.0

    def test_requires_time_value(self):
        assert value_subscore(volatility=25.0, time_value=0.0, premium=2.0) == 0.0

    def test_ratio(self):
        assert abs(value_subscore(volatility=25.0, time_value=1.5, premium=2.25) - 66.667) < 0.01

    def test_capped_at_100(self):
        assert value_subscore(volatility=25.0, time_value=5.0, premium=2.0) == 100.0

    def test_zero_premium_raises(self):
        with pytest.raises(ZeroDivisionError):
            value_subscore(volatility=25.0, time_value=1.0, premium=0.0)


class TestScoreLCE:
    """Test suite for the composite score."""

    def test_score_with_value_component(self):
        """0.40*100 + 0.35*20 + 0.25*66.67 = 63.67 -> 64."""
        opp = make_opportunity(volume=1200, bid=2.00, ask=2.50, volatility=25.0, time_value=1.5)

        breakdown = score_breakdown(opp)
        assert breakdown.liquidity == 100
        assert breakdown.cost == 20
        assert abs(breakdown.value - 66.667) < 0.01
        assert breakdown.total == 64
        assert score_lce(opp) == 64

    def test_score_without_value_component(self):
        """0.40*100 + 0.35*20 + 0 = 47."""
        opp = make_opportunity(volume=1200, bid=2.00, ask=2.50)
        assert score_lce(opp) == 47

    def test_perfect_score(self):
        opp = make_opportunity(volume=5000, bid=1.00, ask=1.02, volatility=30.0, time_value=1.01)
        assert score_lce(opp) == 100

    def test_illiquid_wide_spread_scores_zero(self):
        opp = make_opportunity(volume=10, bid=0.10, ask=0.50)
        assert score_lce(opp) == 0

    def test_arithmetic_error_scores_zero(self):
        """Zero premium with time value divides by zero; the score falls back to 0."""
        opp = NormalizedOpportunity(
            symbol="SPY", contract_type="PUT", strike=400.0, expiration=date(2025, 1, 17),
            days_to_expiry=10, premium=0.0, bid=0.0, ask=0.0, volume=2000, open_interest=0,
            volatility=20.0, time_value=1.0,
        )
        assert score_lce(opp) == 0

    def test_score_always_in_range(self):
        """Scores stay within [0, 100] across a grid of inputs."""
        for volume in (0, 49, 50, 100, 500, 1000, 100000):
            for bid, ask in ((0.01, 5.0), (1.0, 1.01), (2.0, 2.5), (10.0, 10.0)):
                for time_value in (0.0, 0.5, 50.0):
                    opp = make_opportunity(volume=volume, bid=bid, ask=ask,
                                           volatility=20.0, time_value=time_value)
                    assert 0 <= score_lce(opp) <= 100

    def test_idempotent(self):
        opp = make_opportunity(volume=700, bid=1.00, ask=1.08, volatility=30.0, time_value=0.4)
        assert score_lce(opp) == score_lce(opp)

    def test_rescore_returns_new_record(self):
        opp = make_opportunity(volume=1200, bid=2.00, ask=2.50)
        rescored = rescore(opp)

        assert rescored is not opp
        assert opp.lce_score == 0
        assert rescored.lce_score == 47
        assert rescore(rescored) == rescored


class TestRankOpportunities:
    """Test suite for ranking."""

    def test_sorted_descending(self):
        opps = [make_opportunity(lce_score=s, strike=400 + s) for s in (30, 90, 60)]
        ranked = rank_opportunities(opps)
        assert [o.lce_score for o in ranked] == [90, 60, 30]

    def test_top_n(self):
        opps = [make_opportunity(lce_score=s, strike=400 + s) for s in range(10)]
        ranked = rank_opportunities(opps, top_n=3)
        assert [o.lce_score for o in ranked] == [9, 8, 7]

    def test_stable_for_ties(self):
        opps = [make_opportunity(lce_score=50, symbol=s) for s in ("AAA", "BBB", "CCC")]
        ranked = rank_opportunities(opps)
        assert [o.symbol for o in ranked] == ["AAA", "BBB", "CCC"]

    def test_empty(self):
        assert rank_opportunities([]) == []
