"""Unit tests for data models (RawOptionContract, RawOptionChain, NormalizedOpportunity)."""

import pytest
from dataclasses import replace
from datetime import date

from lce_scanner.models.option import NormalizedOpportunity, RawOptionChain, RawOptionContract


class TestRawOptionContract:
    """Test suite for RawOptionContract."""

    def test_defaults_are_zero(self):
        """Test that optional numeric fields default to zero."""
        contract = RawOptionContract(
            symbol="SPY",
            contract_type="CALL",
            expiration=date(2025, 1, 17),
            expiration_key="2025-01-17:35",
            strike=450.0,
        )

        assert contract.bid == 0.0
        assert contract.ask == 0.0
        assert contract.total_volume == 0
        assert contract.delta == 0.0
        assert contract.time_value == 0.0
        assert contract.description is None

    def test_immutable(self):
        """Test that raw contracts are frozen."""
        contract = RawOptionContract("SPY", "PUT", date(2025, 1, 17), "2025-01-17:35", 450.0)
        with pytest.raises(Exception):
            contract.bid = 1.0


class TestRawOptionChain:
    """Test suite for RawOptionChain."""

    def test_calls_and_puts_split(self):
        exp = date(2025, 1, 17)
        chain = RawOptionChain(
            symbol="SPY",
            contracts=[
                RawOptionContract("SPY", "CALL", exp, "2025-01-17:35", 450.0),
                RawOptionContract("SPY", "PUT", exp, "2025-01-17:35", 440.0),
                RawOptionContract("SPY", "CALL", exp, "2025-01-17:35", 455.0),
            ],
        )

        assert len(chain) == 3
        assert [c.strike for c in chain.calls] == [450.0, 455.0]
        assert [c.strike for c in chain.puts] == [440.0]


class TestNormalizedOpportunity:
    """Test suite for NormalizedOpportunity."""

    @pytest.fixture
    def sample_opportunity(self):
        """Create a sample call opportunity."""
        return NormalizedOpportunity(
            symbol="SPY",
            contract_type="CALL",
            strike=450.0,
            expiration=date(2025, 1, 17),
            days_to_expiry=10,
            premium=2.25,
            bid=2.00,
            ask=2.50,
            volume=1200,
            open_interest=5000,
            delta=0.45,
            theta=-0.08,
            volatility=25.0,
            time_value=1.5,
            lce_score=62,
            liquidity="HIGH",
        )

    def test_contract_id(self, sample_opportunity):
        """Test contract id is derived from symbol, type, strike and expiration."""
        assert sample_opportunity.contract_id == "SPY_CALL_450_2025-01-17"

    def test_contract_id_fractional_strike(self, sample_opportunity):
        opp = replace(sample_opportunity, strike=452.5)
        assert opp.contract_id == "SPY_CALL_452.5_2025-01-17"

    def test_spread(self, sample_opportunity):
        assert abs(sample_opportunity.spread - 0.50) < 1e-9

    def test_spread_pct(self, sample_opportunity):
        """Test spread as percent of premium: 0.50 / 2.25 ≈ 22.2%."""
        assert abs(sample_opportunity.spread_pct - 22.222) < 0.01

    def test_spread_pct_zero_premium(self, sample_opportunity):
        """Zero premium is treated as maximally costly."""
        opp = replace(sample_opportunity, premium=0.0, bid=0.0, ask=0.0)
        assert opp.spread_pct == 100.0

    def test_immutable(self, sample_opportunity):
        """Test that opportunities are immutable (frozen dataclass)."""
        with pytest.raises(Exception):
            sample_opportunity.lce_score = 99

    def test_replace_produces_new_record(self, sample_opportunity):
        rescored = replace(sample_opportunity, lce_score=80)
        assert rescored is not sample_opportunity
        assert sample_opportunity.lce_score == 62
        assert rescored.lce_score == 80

    def test_repr(self, sample_opportunity):
        text = repr(sample_opportunity)
        assert "SPY" in text
        assert "450C" in text
        assert "LCE=62" in text
