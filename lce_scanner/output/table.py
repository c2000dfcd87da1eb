"""Tabular views of scan results: search, column sort and pandas export."""

from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from ..data.normalizer import RiskConfig
from ..models.option import NormalizedOpportunity
from ..risk.position_sizing import max_contracts

# Column name (snake_case or dashboard camelCase) -> attribute
SORT_COLUMNS = {
    'symbol': 'symbol',
    'type': 'contract_type',
    'contract_type': 'contract_type',
    'strike': 'strike',
    'premium': 'premium',
    'volume': 'volume',
    'totalVolume': 'volume',
    'open_interest': 'open_interest',
    'lce_score': 'lce_score',
    'lceScore': 'lce_score',
    'days_to_expiry': 'days_to_expiry',
    'daysToExpiry': 'days_to_expiry',
    'delta': 'delta',
    'theta': 'theta',
    'volatility': 'volatility',
}

EXPORT_COLUMNS = [
    'contract_id', 'symbol', 'contract_type', 'strike', 'expiration', 'days_to_expiry',
    'premium', 'bid', 'ask', 'spread_pct', 'volume', 'open_interest', 'lce_score',
    'liquidity', 'delta', 'gamma', 'theta', 'vega', 'volatility', 'time_value',
]


def search_opportunities(
    opportunities: Sequence[NormalizedOpportunity],
    text: Optional[str],
) -> List[NormalizedOpportunity]:
    """Case-insensitive substring match on symbol or contract type."""
    if not text:
        return list(opportunities)

    needle = text.strip().lower()
    return [
        opp for opp in opportunities
        if needle in opp.symbol.lower() or needle in opp.contract_type.lower()
    ]


def sort_opportunities(
    opportunities: Sequence[NormalizedOpportunity],
    column: str = 'lce_score',
    descending: bool = True,
) -> List[NormalizedOpportunity]:
    """Sort by a display column; missing values sort as 0.

    Raises:
        ValueError: If the column is not sortable
    """
    attr = SORT_COLUMNS.get(column)
    if attr is None:
        raise ValueError(f"Cannot sort by {column!r}; choose from {sorted(SORT_COLUMNS)}")

    def key(opp: NormalizedOpportunity):
        value = getattr(opp, attr)
        return 0 if value is None else value

    return sorted(opportunities, key=key, reverse=descending)


def opportunities_to_dataframe(
    opportunities: Sequence[NormalizedOpportunity],
    config: Optional[RiskConfig] = None,
) -> pd.DataFrame:
    """Build a DataFrame with one row per opportunity, in the given order."""
    rows = []
    for opp in opportunities:
        row = {col: getattr(opp, col) for col in EXPORT_COLUMNS}
        if config is not None:
            row['max_contracts'] = max_contracts(opp, config)
        rows.append(row)

    columns = EXPORT_COLUMNS + (['max_contracts'] if config is not None else [])
    return pd.DataFrame(rows, columns=columns)


def export_opportunities_csv(
    opportunities: Sequence[NormalizedOpportunity],
    output_file: str | Path,
    config: Optional[RiskConfig] = None,
) -> Path:
    """Write opportunities to CSV, creating the parent directory if needed."""
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    opportunities_to_dataframe(opportunities, config).to_csv(output_path, index=False)
    return output_path
