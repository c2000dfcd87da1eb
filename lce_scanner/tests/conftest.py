"""Shared fixtures: a fixed scan clock and a Schwab-shaped chain payload."""

import copy
import pytest
from datetime import datetime, timezone

# 2025-01-01 15:00 UTC. Expirations below land at:
#   2025-01-06 -> 5 DTE, 2025-01-11 -> 10 DTE, 2025-01-21 -> 20 DTE, 2025-03-01 -> 59 DTE
SCAN_TIME = datetime(2025, 1, 1, 15, 0, tzinfo=timezone.utc)

CHAIN_PAYLOAD = {
    'symbol': 'SPY',
    'status': 'SUCCESS',
    'underlyingPrice': 448.25,
    'callExpDateMap': {
        '2025-01-11:10': {
            '450.0': [
                {
                    'putCall': 'CALL',
                    'description': 'SPY Jan 11 2025 450 Call',
                    'bid': 2.00,
                    'ask': 2.50,
                    'totalVolume': 1200,
                    'openInterest': 5000,
                    'volatility': 25.0,
                    'delta': 0.45,
                    'gamma': 0.03,
                    'theta': -0.08,
                    'vega': 0.12,
                    'timeValue': 1.50,
                    'strikePrice': 450.0,
                },
                {
                    'putCall': 'CALL',
                    'bid': 9.00,
                    'ask': 9.50,
                    'totalVolume': 5,
                    'strikePrice': 450.0,
                },
            ],
            '455.0': [
                {'bid': 1.00, 'ask': 1.10, 'totalVolume': 300, 'strikePrice': 455.0},
            ],
        },
        '2025-03-01:59': {
            '460.0': [
                {'bid': 3.00, 'ask': 3.20, 'totalVolume': 2000, 'strikePrice': 460.0},
            ],
        },
    },
    'putExpDateMap': {
        '2025-01-06:5': {
            '440.0': [
                {'bid': 1.00, 'ask': 1.10, 'totalVolume': 900, 'strikePrice': 440.0},
            ],
        },
        '2025-01-21:20': {
            '445.0': [
                {
                    'putCall': 'PUT',
                    'bid': 1.50,
                    'ask': 1.60,
                    'totalVolume': 700,
                    'openInterest': 2500,
                    'volatility': 22.0,
                    'delta': -0.40,
                    'timeValue': 1.55,
                    'strikePrice': 445.0,
                },
            ],
        },
    },
}


@pytest.fixture
def scan_time():
    """Fixed scan clock."""
    return SCAN_TIME


@pytest.fixture
def chain_payload():
    """Fresh copy of a two-expiration SPY chain payload.

    With default risk settings only the 450 call (10 DTE, vol 1200) and the
    445 put (20 DTE, vol 700) survive normalization.
    """
    return copy.deepcopy(CHAIN_PAYLOAD)


@pytest.fixture
def payload_for():
    """Factory building the sample payload for any symbol."""
    def _build(symbol: str):
        payload = copy.deepcopy(CHAIN_PAYLOAD)
        payload['symbol'] = symbol
        return payload
    return _build
