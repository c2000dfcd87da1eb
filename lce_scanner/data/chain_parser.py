"""Decoders for the Schwab option-chain wire format.

The provider groups contracts as::

    {"callExpDateMap": {"2025-01-17:35": {"450.0": [{...contract...}, ...]}},
     "putExpDateMap":  {...}}

These nested maps are decoded once, here, into a flat RawOptionChain with
explicit expiration/strike fields and zero-defaulted numerics.
"""

import json
import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Mapping

from ..models.option import ContractType, RawOptionChain, RawOptionContract
from ..utils.error_handling import DataValidationError, NoDataError

logger = logging.getLogger("lce_scanner.chain_parser")

EXP_DATE_MAPS: Dict[str, ContractType] = {
    'callExpDateMap': 'CALL',
    'putExpDateMap': 'PUT',
}


def parse_option_chain(payload: Mapping[str, Any], symbol: str) -> RawOptionChain:
    """Decode a provider chain payload into a flat RawOptionChain.

    Only the first contract of each strike's array is kept; the provider may
    return more than one but only the primary quote is used.

    Args:
        payload: Decoded JSON response of the chains endpoint
        symbol: Underlying symbol the payload was requested for

    Returns:
        RawOptionChain with one record per (type, expiration, strike)

    Raises:
        DataValidationError: If payload is not a JSON object
        NoDataError: If payload has neither a call map nor a put map
    """
    if not isinstance(payload, Mapping):
        raise DataValidationError(
            f"Option chain payload for {symbol} must be an object, got {type(payload).__name__}"
        )

    symbol = str(payload.get('symbol') or symbol).strip().upper()

    if payload.get('callExpDateMap') is None and payload.get('putExpDateMap') is None:
        raise NoDataError(symbol)

    chain = RawOptionChain(
        symbol=symbol,
        underlying_price=_optional_float(payload.get('underlyingPrice')),
        has_calls=payload.get('callExpDateMap') is not None,
        has_puts=payload.get('putExpDateMap') is not None,
    )

    skipped = 0
    for map_name, contract_type in EXP_DATE_MAPS.items():
        exp_date_map = payload.get(map_name) or {}
        for exp_key, strikes in exp_date_map.items():
            try:
                expiration = parse_expiration_key(exp_key)
            except ValueError as e:
                logger.warning("Skipping %s %s expiration bucket %r: %s", symbol, contract_type, exp_key, e)
                skipped += 1
                continue

            if strikes and not isinstance(strikes, Mapping):
                logger.warning("Skipping %s %s expiration bucket %r: strikes are not an object", symbol, contract_type, exp_key)
                skipped += 1
                continue

            for strike_key, contract_array in (strikes or {}).items():
                if not contract_array:
                    continue
                if not isinstance(contract_array, list):
                    logger.warning(
                        "Skipping %s %s %s strike %s: expected a list of quotes, got %s",
                        symbol, contract_type, exp_key, strike_key, type(contract_array).__name__
                    )
                    skipped += 1
                    continue
                if len(contract_array) > 1:
                    logger.debug(
                        "%s %s %s %s: %d quotes returned, using the first",
                        symbol, contract_type, exp_key, strike_key, len(contract_array)
                    )
                try:
                    chain.contracts.append(
                        _parse_contract(contract_array[0], symbol, contract_type, expiration, exp_key, strike_key)
                    )
                except (TypeError, ValueError, OverflowError) as e:
                    logger.warning(
                        "Skipping %s %s %s strike %s due to error: %s",
                        symbol, contract_type, exp_key, strike_key, e
                    )
                    skipped += 1

    if skipped:
        logger.warning("Skipped %d malformed entries in %s chain", skipped, symbol)

    logger.debug("Decoded %d contracts for %s", len(chain.contracts), symbol)
    return chain


def parse_expiration_key(exp_key: str) -> date:
    """Parse a provider expiration key such as '2025-01-17:35'.

    The suffix after ':' is the provider's own DTE count and is ignored;
    days to expiry is always recomputed against the scan clock.
    """
    exp_str = str(exp_key).split(':')[0].strip()
    try:
        return datetime.strptime(exp_str, '%Y-%m-%d').date()
    except ValueError:
        raise ValueError(f"Invalid expiration date format: {exp_key}")


def _parse_contract(
    data: Mapping[str, Any],
    symbol: str,
    contract_type: ContractType,
    expiration: date,
    exp_key: str,
    strike_key: str,
) -> RawOptionContract:
    if not isinstance(data, Mapping):
        raise ValueError(f"contract entry must be an object, got {type(data).__name__}")

    strike = _to_float(data.get('strikePrice', strike_key))
    if strike <= 0:
        raise ValueError(f"Invalid strike price: {strike_key}")

    bid = _to_float(data.get('bid'))
    ask = _to_float(data.get('ask'))
    if bid < 0 or ask < 0:
        raise ValueError(f"Negative quote: bid={bid} ask={ask}")

    return RawOptionContract(
        symbol=symbol,
        contract_type=contract_type,
        expiration=expiration,
        expiration_key=exp_key,
        strike=strike,
        bid=bid,
        ask=ask,
        total_volume=_to_int(data.get('totalVolume')),
        open_interest=_to_int(data.get('openInterest')),
        delta=_to_float(data.get('delta')),
        gamma=_to_float(data.get('gamma')),
        theta=_to_float(data.get('theta')),
        vega=_to_float(data.get('vega')),
        volatility=_to_float(data.get('volatility')),
        time_value=_to_float(data.get('timeValue')),
        description=data.get('description') or None,
    )


def _to_float(value: Any) -> float:
    """Convert a wire value to float; absent or NaN becomes 0, infinities are rejected."""
    if value is None or value == '':
        return 0.0
    result = float(value)
    if math.isnan(result):
        return 0.0
    if math.isinf(result):
        raise ValueError(f"Non-finite value: {value!r}")
    return result


def _to_int(value: Any) -> int:
    return int(_to_float(value))


def _optional_float(value: Any) -> float | None:
    try:
        return None if value is None else float(value)
    except (TypeError, ValueError):
        return None


def load_chain_from_json(json_path: str | Path) -> Dict[str, Any]:
    """Load a saved chain payload (as returned by the chains endpoint).

    Raises:
        FileNotFoundError: If the file doesn't exist
        DataValidationError: If the file is not valid JSON
    """
    json_path = Path(json_path)
    if not json_path.exists():
        logger.error("Chain file not found: %s", json_path)
        raise FileNotFoundError(f"Chain file not found: {json_path}")

    logger.info("Loading option chain from JSON: %s", json_path)
    try:
        with open(json_path, 'r') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in %s: %s", json_path, e)
        raise DataValidationError(f"Invalid JSON in {json_path}: {e}")


def dump_chain_to_json(payload: Mapping[str, Any], json_path: str | Path) -> Path:
    """Save a raw chain payload so it can be re-scanned offline."""
    json_path = Path(json_path)
    json_path.parent.mkdir(parents=True, exist_ok=True)
    with open(json_path, 'w') as f:
        json.dump(payload, f, indent=2)
    return json_path
