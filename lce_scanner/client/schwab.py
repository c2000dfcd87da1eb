"""Schwab market-data and trader API client.

Requirements:
    pip install requests

Setup:
    Obtain an OAuth access token for your Schwab developer app and export it
    as SCHWAB_ACCESS_TOKEN (or pass access_token=...). This client never
    performs the OAuth exchange itself; it only sends the bearer token.

Usage:
    client = SchwabClient()
    chain = client.get_option_chain("SPY", strike_count=20)
    quotes = client.get_quotes(["SPY", "QQQ"])
"""

import logging
import os
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import requests

from ..data.validators import (
    validate_account_number,
    validate_contract_type,
    validate_strike_count,
    validate_symbol,
    validate_symbols,
)
from ..utils.cache import ResponseCache, make_cache_key
from ..utils.error_handling import (
    AuthenticationError,
    MarketDataError,
    NotFoundError,
    RateLimitedError,
    TransientError,
    retry_with_backoff,
)

logger = logging.getLogger("lce_scanner.schwab")

DEFAULT_BASE_URL = "https://api.schwabapi.com"
DEFAULT_TIMEOUT = 30.0
# Longer Retry-After waits skip the symbol instead of stalling the scan
MAX_RETRY_WAIT = 15.0

# Seconds a GET response stays fresh
CHAIN_CACHE_TTL = 30.0
QUOTE_CACHE_TTL = 15.0


class SchwabClient:
    """Thin authenticated client for the Schwab REST API.

    Transient failures (5xx, timeouts, connection errors) and rate limiting
    are retried with exponential backoff; everything else is raised as a
    MarketDataError subclass.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        cache: Optional[ResponseCache] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_retry_wait: float = MAX_RETRY_WAIT,
    ):
        """Initialize Schwab client.

        Args:
            access_token: OAuth bearer token (default: SCHWAB_ACCESS_TOKEN env var)
            base_url: API root (default: SCHWAB_BASE_URL env var or the public endpoint)
            session: requests Session, injectable for tests
            timeout: Per-request timeout in seconds
            max_retries: Total attempts for retryable failures
            backoff_factor: Exponential backoff base in seconds
            cache: Response cache for GET requests
            sleep: Sleep function used between retries
            max_retry_wait: Longest wait before a retry; a longer Retry-After
                raises RateLimitedError immediately so the symbol is skipped
        """
        self.access_token = access_token or os.getenv('SCHWAB_ACCESS_TOKEN')
        self.base_url = (base_url or os.getenv('SCHWAB_BASE_URL') or DEFAULT_BASE_URL).rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.cache = cache if cache is not None else ResponseCache()
        self._send_with_retry = retry_with_backoff(
            max_retries=max_retries,
            backoff_factor=backoff_factor,
            exceptions=(TransientError, RateLimitedError),
            sleep=sleep,
            max_wait=max_retry_wait,
        )(self._send)

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    def get_option_chain(
        self,
        symbol: str,
        contract_type: str = 'ALL',
        strike_count: int = 10,
    ) -> Dict[str, Any]:
        """Get the option chain for an underlying.

        Args:
            symbol: Underlying symbol (e.g., 'SPY')
            contract_type: CALL, PUT or ALL
            strike_count: Number of strikes around the money (1-200)

        Returns:
            Chain payload with callExpDateMap / putExpDateMap
        """
        params = {
            'symbol': validate_symbol(symbol),
            'contractType': validate_contract_type(contract_type),
            'strikeCount': validate_strike_count(strike_count),
            'includeUnderlyingQuote': 'true',
        }
        return self._request('GET', '/marketdata/v1/chains', params=params, cache_ttl=CHAIN_CACHE_TTL)

    def fetch_option_chain(self, symbol: str) -> Dict[str, Any]:
        """Provider interface used by the scan orchestrator."""
        return self.get_option_chain(symbol)

    def get_quotes(self, symbols: str | Iterable[str]) -> Dict[str, Any]:
        """Get quotes for one or more symbols, keyed by symbol."""
        symbol_list = validate_symbols(symbols)
        return self._request(
            'GET', '/marketdata/v1/quotes',
            params={'symbols': ','.join(symbol_list)},
            cache_ttl=QUOTE_CACHE_TTL,
        )

    # ------------------------------------------------------------------
    # Accounts and orders
    # ------------------------------------------------------------------

    def get_accounts(self) -> List[Dict[str, Any]]:
        return self._request('GET', '/trader/v1/accounts') or []

    def get_account(self, account_number: str, fields: Optional[str] = None) -> Dict[str, Any]:
        account_number = validate_account_number(account_number)
        params = {'fields': fields} if fields else None
        return self._request('GET', f'/trader/v1/accounts/{account_number}', params=params)

    def get_positions(self, account_number: str) -> List[Dict[str, Any]]:
        """Open positions for an account."""
        account = self.get_account(account_number, fields='positions') or {}
        return account.get('securitiesAccount', {}).get('positions', [])

    def place_order(self, account_number: str, order: Mapping[str, Any]) -> Dict[str, Any]:
        """Submit an order.

        Returns:
            {'orderId': ...} parsed from the Location header when provided,
            otherwise the decoded response body (may be empty)
        """
        account_number = validate_account_number(account_number)
        response = self._send_with_retry(
            'POST', f'/trader/v1/accounts/{account_number}/orders', json_body=dict(order)
        )
        location = response.headers.get('Location')
        if location:
            order_id = location.rstrip('/').rsplit('/', 1)[-1]
            logger.info("Placed order %s on account %s", order_id, account_number[-4:])
            return {'orderId': order_id}
        return self._decode(response) or {}

    def get_order(self, account_number: str, order_id: str | int) -> Dict[str, Any]:
        account_number = validate_account_number(account_number)
        return self._request('GET', f'/trader/v1/accounts/{account_number}/orders/{order_id}')

    def cancel_order(self, account_number: str, order_id: str | int) -> None:
        account_number = validate_account_number(account_number)
        self._request('DELETE', f'/trader/v1/accounts/{account_number}/orders/{order_id}')
        logger.info("Cancelled order %s on account %s", order_id, account_number[-4:])

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        cache_ttl: float = 0.0,
    ) -> Any:
        def fetch():
            return self._decode(self._send_with_retry(method, path, params=params))

        if method == 'GET' and cache_ttl > 0:
            return self.cache.get_or_fetch(make_cache_key(method, path, params), cache_ttl, fetch)
        return fetch()

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Perform one HTTP request and map failures onto the error taxonomy."""
        if not self.access_token:
            raise AuthenticationError("No access token available. Authentication required.")

        url = path if path.startswith('http') else f"{self.base_url}{path}"
        headers = {
            'Authorization': f'Bearer {self.access_token}',
            'Accept': 'application/json',
        }

        logger.debug("%s %s params=%s", method, url, params)
        start = time.monotonic()
        try:
            response = self.session.request(
                method, url, headers=headers, params=params, json=json_body, timeout=self.timeout
            )
        except requests.Timeout as e:
            raise TransientError(f"{method} {path} timed out after {self.timeout:g}s: {e}")
        except requests.ConnectionError as e:
            raise TransientError(f"{method} {path} connection failed: {e}")

        elapsed_ms = (time.monotonic() - start) * 1000
        status = response.status_code
        logger.debug("%s %s -> %d (%.0fms)", method, path, status, elapsed_ms)

        if status < 400:
            return response

        text = response.text
        if status in (401, 403):
            raise AuthenticationError(
                f"API request failed: {status} (token missing, expired or not authorized)",
                status=status, response_text=text,
            )
        if status == 404:
            raise NotFoundError(f"API request failed: 404 {path} not found", status=status, response_text=text)
        if status == 429:
            retry_after = _parse_retry_after(response.headers.get('Retry-After'))
            logger.warning("Rate limited on %s (retry after %s)", path, retry_after)
            raise RateLimitedError(
                f"Rate limit exceeded for {path}", retry_after=retry_after, response_text=text
            )
        if status >= 500:
            raise TransientError(f"API request failed: {status} {path}", status=status, response_text=text)
        raise MarketDataError(f"API request failed: {status} {path}", status=status, response_text=text)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise MarketDataError(
                f"Invalid JSON in response: {e}", status=response.status_code, response_text=response.text
            )


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None
