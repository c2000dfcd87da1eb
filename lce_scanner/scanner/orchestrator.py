"""Scan orchestration: symbols -> chains -> ranked opportunities.

Symbols are processed strictly one at a time to respect the provider's
rate limits. A failure on one symbol is logged and the scan moves on;
already accumulated results are never discarded.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from ..data.normalizer import RiskConfig, normalize_payload
from ..data.validators import validate_symbols
from ..models.option import NormalizedOpportunity
from ..scoring.scorer import rank_opportunities
from ..strategies.filters import Strategy, filter_opportunities, strategy_label
from ..utils.error_handling import (
    ConfigurationError,
    MarketDataError,
    NoDataError,
    RateLimitedError,
    ScannerError,
    TransientError,
)
from .events import LogEvent, ProgressEvent, ScanSink, Severity
from .settings import ScanSettings

logger = logging.getLogger("lce_scanner.orchestrator")

MAX_SCAN_RESULTS = 100


class ChainProvider(Protocol):
    """Anything that can fetch a raw option-chain payload for a symbol."""

    def fetch_option_chain(self, symbol: str) -> Mapping[str, Any]:
        ...


class ScanState(str, Enum):
    IDLE = "IDLE"
    SCANNING = "SCANNING"


class ScanStatus(str, Enum):
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass
class ScanResult:
    """Outcome of one scan invocation."""

    status: ScanStatus
    opportunities: List[NormalizedOpportunity] = field(default_factory=list)
    strategy: Optional[str] = None
    symbols_scanned: int = 0
    total_symbols: int = 0
    errors: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status == ScanStatus.COMPLETED


class OpportunityScanner:
    """Runs scans over a watchlist and publishes the latest ranked results.

    At most one scan runs at a time; a scan requested while another is in
    flight returns a SKIPPED result and changes nothing.

    Example:
        >>> scanner = OpportunityScanner(SchwabClient(token), config=RiskConfig())
        >>> result = scanner.scan(["SPY", "QQQ"], Strategy.HIGH_VALUE)
        >>> result.opportunities[0].lce_score
    """

    def __init__(
        self,
        provider: ChainProvider,
        config: Optional[RiskConfig] = None,
        settings: Optional[ScanSettings] = None,
        sinks: Iterable[ScanSink] = (),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """Initialize scanner.

        Args:
            provider: Market-data provider used to fetch chains
            config: Default risk configuration when scan() is not given one
            settings: Pacing settings (inter-symbol delay, rescan interval)
            sinks: Receivers of progress, log and result events
            clock: Returns the current time; drives days-to-expiry
        """
        self.provider = provider
        self.config = config
        self.settings = settings or ScanSettings()
        self.sinks: List[ScanSink] = list(sinks)
        self._clock = clock

        self._scan_lock = threading.Lock()
        self._cancel_event = threading.Event()
        self._state = ScanState.IDLE
        self._latest_results: List[NormalizedOpportunity] = []
        self.last_scan_time: Optional[datetime] = None

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def is_scanning(self) -> bool:
        return self._state == ScanState.SCANNING

    @property
    def latest_results(self) -> List[NormalizedOpportunity]:
        """Ranked results of the last completed scan."""
        return list(self._latest_results)

    def add_sink(self, sink: ScanSink) -> None:
        self.sinks.append(sink)

    def cancel(self) -> None:
        """Request cancellation; the running scan stops before its next symbol."""
        if self.is_scanning:
            self._cancel_event.set()

    def scan(
        self,
        symbols: Optional[Sequence[str]] = None,
        strategy: "Strategy | str | None" = None,
        config: Optional[RiskConfig] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ScanResult:
        """Scan symbols sequentially and rank the combined opportunities.

        Args:
            symbols: Watchlist (defaults to settings.symbols)
            strategy: Strategy member or id (defaults to settings.strategy)
            config: Risk configuration (defaults to the scanner's config)
            cancel_event: Optional external cancellation flag, checked
                between symbols in addition to cancel()

        Returns:
            ScanResult; only COMPLETED scans replace latest_results
        """
        if not self._scan_lock.acquire(blocking=False):
            logger.info("Scan already in progress, ignoring trigger")
            return ScanResult(status=ScanStatus.SKIPPED)

        try:
            self._state = ScanState.SCANNING
            self._cancel_event.clear()
            return self._run_scan(
                symbols if symbols is not None else self.settings.symbols,
                strategy if strategy is not None else self.settings.strategy,
                config or self.config,
                cancel_event,
            )
        finally:
            self._state = ScanState.IDLE
            self._scan_lock.release()

    def _run_scan(
        self,
        symbols: Sequence[str],
        strategy: "Strategy | str",
        config: Optional[RiskConfig],
        cancel_event: Optional[threading.Event],
    ) -> ScanResult:
        started_at = datetime.now(timezone.utc)
        strategy_id = strategy.value if isinstance(strategy, Strategy) else str(strategy)

        try:
            if config is None:
                raise ConfigurationError("Risk configuration is missing")
            symbols = validate_symbols(symbols)
        except ScannerError as e:
            self._emit_log(f"Scan aborted: {e}", "error")
            return ScanResult(
                status=ScanStatus.FAILED,
                strategy=strategy_id,
                error=str(e),
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
            )

        total = len(symbols)
        result = ScanResult(
            status=ScanStatus.COMPLETED,
            strategy=strategy_id,
            total_symbols=total,
            started_at=started_at,
        )
        accumulated: List[NormalizedOpportunity] = []

        self._emit_log(f"Starting {strategy_label(strategy)} scan of {total} symbols...")
        self._emit_progress(ProgressEvent(current_index=0, total=total))

        for index, symbol in enumerate(symbols):
            if self._is_cancelled(cancel_event):
                result.status = ScanStatus.CANCELLED
                break

            self._emit_progress(ProgressEvent(current_index=index + 1, total=total))
            self._emit_log(f"Scanning {symbol}... ({index + 1}/{total})")

            try:
                payload = self.provider.fetch_option_chain(symbol)
                opportunities = normalize_payload(payload, symbol, config, now=self._clock())
                filtered = filter_opportunities(opportunities, strategy, config)
            except NoDataError as e:
                self._record_failure(result, symbol, str(e), "warning")
            except (RateLimitedError, TransientError) as e:
                self._record_failure(result, symbol, f"Skipping {symbol}: {e}", "warning")
            except MarketDataError as e:
                self._record_failure(result, symbol, f"Error scanning {symbol}: {e}", "error")
            except Exception as e:
                logger.warning("Unexpected error scanning %s", symbol, exc_info=True)
                self._record_failure(result, symbol, f"Error scanning {symbol}: {e}", "error")
            else:
                accumulated.extend(filtered)
                self._emit_log(
                    f"Found {len(filtered)} opportunities in {symbol}",
                    "success" if filtered else "info",
                )

            result.symbols_scanned = index + 1

            if index < total - 1 and self.settings.symbol_delay > 0:
                self._pause(cancel_event)

        result.opportunities = rank_opportunities(accumulated, top_n=MAX_SCAN_RESULTS)
        result.finished_at = datetime.now(timezone.utc)

        if result.status == ScanStatus.CANCELLED:
            self._emit_log(
                f"Scan cancelled after {result.symbols_scanned}/{total} symbols", "warning"
            )
            return result

        # Wholesale replacement, never merged with earlier scans
        self._latest_results = result.opportunities
        self.last_scan_time = result.finished_at
        self._emit_results(result.opportunities)
        self._emit_log(f"Scan complete! Found {len(result.opportunities)} opportunities", "success")
        return result

    def _is_cancelled(self, cancel_event: Optional[threading.Event]) -> bool:
        return self._cancel_event.is_set() or (cancel_event is not None and cancel_event.is_set())

    def _pause(self, cancel_event: Optional[threading.Event]) -> None:
        """Throttle between symbols; wakes early on cancel()."""
        event = cancel_event if cancel_event is not None else self._cancel_event
        event.wait(self.settings.symbol_delay)

    def _record_failure(self, result: ScanResult, symbol: str, message: str, severity: Severity) -> None:
        result.errors[symbol] = message
        self._emit_log(message, severity)

    def _emit_progress(self, event: ProgressEvent) -> None:
        for sink in self.sinks:
            try:
                sink.on_progress(event)
            except Exception as e:
                logger.warning("Sink %r failed on progress event: %s", sink, e)

    def _emit_log(self, message: str, severity: Severity = "info") -> None:
        event = LogEvent(message=message, severity=severity)
        for sink in self.sinks:
            try:
                sink.on_log(event)
            except Exception as e:
                logger.warning("Sink %r failed on log event: %s", sink, e)

    def _emit_results(self, opportunities: Sequence[NormalizedOpportunity]) -> None:
        for sink in self.sinks:
            try:
                sink.on_results(opportunities)
            except Exception as e:
                logger.warning("Sink %r failed on results: %s", sink, e)
