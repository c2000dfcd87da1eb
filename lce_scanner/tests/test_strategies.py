"""Unit tests for strategy predicates and filtering."""

import pytest
from datetime import date

from lce_scanner.data.normalizer import RiskConfig
from lce_scanner.models.option import NormalizedOpportunity
from lce_scanner.strategies.filters import (
    MAX_STRATEGY_RESULTS,
    Strategy,
    filter_opportunities,
    is_earnings_play,
    is_high_momentum,
    is_high_value,
    is_technical_setup,
    is_volatility_expansion,
    resolve_strategy,
    strategy_label,
)


def make_opportunity(**overrides) -> NormalizedOpportunity:
    fields = dict(
        symbol="AAPL",
        contract_type="CALL",
        strike=190.0,
        expiration=date(2025, 1, 17),
        days_to_expiry=16,
        premium=3.00,
        bid=2.95,
        ask=3.05,
        volume=800,
        open_interest=2000,
        delta=0.0,
        gamma=0.0,
        theta=0.0,
        volatility=0.0,
        lce_score=50,
    )
    fields.update(overrides)
    return NormalizedOpportunity(**fields)


@pytest.fixture
def config():
    return RiskConfig()


class TestPredicates:
    """Test suite for the five strategy predicates."""

    def test_high_momentum(self, config):
        assert is_high_momentum(make_opportunity(delta=0.45, volume=500), config)
        assert is_high_momentum(make_opportunity(delta=-0.55, volume=600), config)
        assert not is_high_momentum(make_opportunity(delta=0.40, volume=5000), config)
        assert not is_high_momentum(make_opportunity(delta=0.60, volume=499), config)

    def test_high_value(self, config):
        assert is_high_value(make_opportunity(lce_score=70), config)
        assert not is_high_value(make_opportunity(lce_score=69), config)

        capped = RiskConfig(max_option_price=2.0)
        assert not is_high_value(make_opportunity(lce_score=90, premium=3.0), capped)

    def test_volatility_expansion(self, config):
        assert is_volatility_expansion(make_opportunity(volatility=35.0, gamma=0.02), config)
        assert not is_volatility_expansion(make_opportunity(volatility=35.0, gamma=0.01), config)
        assert not is_volatility_expansion(make_opportunity(volatility=0.3, gamma=0.05), config)

    def test_earnings_play(self, config):
        assert is_earnings_play(make_opportunity(days_to_expiry=10, volume=1500), config)
        assert is_earnings_play(make_opportunity(days_to_expiry=14, volume=1000), config)
        assert not is_earnings_play(make_opportunity(days_to_expiry=20, volume=1500), config)
        assert not is_earnings_play(make_opportunity(days_to_expiry=10, volume=999), config)

    def test_technical_setup(self, config):
        assert is_technical_setup(make_opportunity(delta=0.30, theta=-0.06), config)
        assert is_technical_setup(make_opportunity(delta=-0.35, theta=-0.10), config)
        assert not is_technical_setup(make_opportunity(delta=0.29, theta=-0.10), config)
        assert not is_technical_setup(make_opportunity(delta=0.50, theta=-0.05), config)


class TestStrategyLookup:
    """Test suite for strategy ids and labels."""

    def test_resolve_case_insensitive(self):
        assert resolve_strategy('high_value') is Strategy.HIGH_VALUE
        assert resolve_strategy(' EARNINGS_PLAYS ') is Strategy.EARNINGS_PLAYS
        assert resolve_strategy(Strategy.TECHNICAL_SETUPS) is Strategy.TECHNICAL_SETUPS

    def test_resolve_unknown(self):
        assert resolve_strategy('IRON_CONDORS') is None
        assert resolve_strategy(None) is None

    def test_labels(self):
        assert strategy_label('HIGH_MOMENTUM') == 'High Momentum'
        assert strategy_label(Strategy.VOLATILITY_EXPANSION) == 'Volatility Expansion'
        assert strategy_label('IRON_CONDORS') == 'IRON_CONDORS'
        assert strategy_label(None) == 'All Opportunities'

    def test_enum_is_str(self):
        assert Strategy.HIGH_VALUE == 'HIGH_VALUE'
        assert len(Strategy) == 5


class TestFilterOpportunities:
    """Test suite for filter_opportunities."""

    def test_earnings_filter_by_dte(self, config):
        """Same contract at 10 vs 20 DTE: only the 10 DTE one is an earnings play."""
        near = make_opportunity(days_to_expiry=10, volume=1500, strike=190.0)
        far = make_opportunity(days_to_expiry=20, volume=1500, strike=195.0)

        result = filter_opportunities([near, far], 'EARNINGS_PLAYS', config)
        assert result == [near]

    def test_results_sorted_by_score(self, config):
        opps = [make_opportunity(delta=0.5, lce_score=s, strike=100.0 + s) for s in (40, 95, 70)]

        result = filter_opportunities(opps, Strategy.HIGH_MOMENTUM, config)
        assert [o.lce_score for o in result] == [95, 70, 40]

    def test_results_match_predicate(self, config):
        opps = [
            make_opportunity(delta=0.5, volume=600, strike=1.0),
            make_opportunity(delta=0.2, volume=600, strike=2.0),
            make_opportunity(delta=0.9, volume=100, strike=3.0),
        ]

        result = filter_opportunities(opps, 'HIGH_MOMENTUM', config)
        assert [o.strike for o in result] == [1.0]
        assert all(is_high_momentum(o, config) for o in result)

    def test_unknown_strategy_passes_through_capped(self, config):
        opps = [make_opportunity(lce_score=i % 100, strike=float(i + 1)) for i in range(60)]

        result = filter_opportunities(opps, 'SOMETHING_ELSE', config)

        assert len(result) == MAX_STRATEGY_RESULTS == 50
        scores = [o.lce_score for o in result]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 59

    def test_custom_top_n(self, config):
        opps = [make_opportunity(lce_score=s, strike=float(s)) for s in range(1, 11)]
        result = filter_opportunities(opps, None, config, top_n=3)
        assert [o.lce_score for o in result] == [10, 9, 8]

    def test_empty_input(self, config):
        assert filter_opportunities([], 'HIGH_VALUE', config) == []
