"""Input validators for symbols, contract types and account identifiers.

Every validator returns the cleaned value or raises ValidationError with
the offending field and a machine-readable code.
"""

import logging
import re
from typing import Iterable, List

from ..utils.error_handling import ValidationError

logger = logging.getLogger("lce_scanner.validators")

SYMBOL_PATTERN = re.compile(r'^[A-Z]{1,5}$')
ACCOUNT_PATTERN = re.compile(r'^[A-Z0-9-]+$', re.IGNORECASE)

MAX_SYMBOLS_PER_REQUEST = 100
CONTRACT_TYPE_CHOICES = ('CALL', 'PUT', 'ALL')
DEFAULT_STRIKE_COUNT = 10
MAX_STRIKE_COUNT = 200


def validate_symbol(symbol: str) -> str:
    """Validate and normalize a ticker symbol to 1-5 uppercase letters.

    Raises:
        ValidationError: REQUIRED, INVALID_TYPE or INVALID_FORMAT
    """
    if not symbol:
        raise ValidationError('Symbol is required', 'symbol', 'REQUIRED')

    if not isinstance(symbol, str):
        raise ValidationError('Symbol must be a string', 'symbol', 'INVALID_TYPE')

    clean_symbol = symbol.strip().upper()
    if not SYMBOL_PATTERN.match(clean_symbol):
        raise ValidationError(
            f'Symbol must be 1-5 letters only: {symbol!r}', 'symbol', 'INVALID_FORMAT'
        )

    return clean_symbol


def validate_symbols(symbols: str | Iterable[str]) -> List[str]:
    """Validate a list (or comma-separated string) of symbols.

    Raises:
        ValidationError: If empty, too long, or any symbol is invalid
    """
    if not symbols:
        raise ValidationError('Symbols are required', 'symbols', 'REQUIRED')

    if isinstance(symbols, str):
        symbol_list = [s.strip() for s in symbols.split(',') if s.strip()]
    else:
        try:
            symbol_list = list(symbols)
        except TypeError:
            raise ValidationError(
                'Symbols must be a list or comma-separated string', 'symbols', 'INVALID_TYPE'
            )

    if not symbol_list:
        raise ValidationError('At least one symbol is required', 'symbols', 'EMPTY')

    if len(symbol_list) > MAX_SYMBOLS_PER_REQUEST:
        raise ValidationError(
            f'Maximum {MAX_SYMBOLS_PER_REQUEST} symbols allowed per request', 'symbols', 'TOO_MANY'
        )

    return [validate_symbol(s) for s in symbol_list]


def validate_contract_type(contract_type: str | None) -> str:
    """Validate contract type, defaulting to ALL."""
    if not contract_type:
        return 'ALL'

    clean_type = str(contract_type).upper()
    if clean_type not in CONTRACT_TYPE_CHOICES:
        raise ValidationError(
            f"Contract type must be one of: {', '.join(CONTRACT_TYPE_CHOICES)}",
            'contractType',
            'INVALID_VALUE',
        )
    return clean_type


def validate_strike_count(strike_count: int | str | None) -> int:
    """Validate number of strikes requested around the money."""
    if strike_count is None or strike_count == '':
        return DEFAULT_STRIKE_COUNT

    try:
        count = int(strike_count)
    except (TypeError, ValueError):
        raise ValidationError('Strike count must be a number', 'strikeCount', 'INVALID_TYPE')

    if count < 1:
        raise ValidationError('Strike count must be at least 1', 'strikeCount', 'TOO_SMALL')
    if count > MAX_STRIKE_COUNT:
        raise ValidationError(
            f'Strike count cannot exceed {MAX_STRIKE_COUNT}', 'strikeCount', 'TOO_LARGE'
        )
    return count


def validate_account_number(account_number: str) -> str:
    """Validate a brokerage account identifier (8-20 alphanumerics or dashes)."""
    if not account_number:
        raise ValidationError('Account number is required', 'accountNumber', 'REQUIRED')

    if not isinstance(account_number, str):
        raise ValidationError('Account number must be a string', 'accountNumber', 'INVALID_TYPE')

    clean_account = account_number.strip()
    if len(clean_account) < 8 or len(clean_account) > 20:
        raise ValidationError(
            'Account number must be 8-20 characters', 'accountNumber', 'INVALID_LENGTH'
        )
    if not ACCOUNT_PATTERN.match(clean_account):
        raise ValidationError(
            'Account number contains invalid characters', 'accountNumber', 'INVALID_FORMAT'
        )
    return clean_account
