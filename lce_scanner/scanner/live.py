"""Live scanning: re-run the scan on a fixed wall-clock interval."""

import logging
import threading
import time
from typing import Callable, Optional, Sequence

from ..data.normalizer import RiskConfig
from ..strategies.filters import Strategy
from .events import LogEvent, Severity
from .orchestrator import OpportunityScanner, ScanResult

logger = logging.getLogger("lce_scanner.live")


class LiveScanner:
    """Triggers OpportunityScanner.scan every `interval` seconds on a daemon thread.

    The first scan starts immediately. Triggers are aligned to the start
    time; a trigger that falls while a scan is still running is dropped,
    never queued. stop() cancels the running scan between symbols.
    """

    def __init__(
        self,
        scanner: OpportunityScanner,
        symbols: Optional[Sequence[str]] = None,
        strategy: "Strategy | str | None" = None,
        config: Optional[RiskConfig] = None,
        interval: Optional[float] = None,
        on_result: Optional[Callable[[ScanResult], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.scanner = scanner
        self.symbols = symbols
        self.strategy = strategy
        self.config = config
        self.interval = interval if interval is not None else scanner.settings.rescan_interval
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        self.on_result = on_result
        self._clock = clock

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_result: Optional[ScanResult] = None
        self.scan_count = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start live scanning; a second start() while running is ignored."""
        if self.running:
            logger.debug("Live scanning already active")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="lce-live-scanner", daemon=True)
        self._thread.start()
        self._log(f"Live scanning activated ({self.interval:g}s intervals)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop live scanning and wait for the worker thread to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self._log("Live scanning stopped")

    def _run(self) -> None:
        next_run = self._clock()
        while not self._stop_event.is_set():
            try:
                result = self.scanner.scan(
                    self.symbols, self.strategy, self.config, cancel_event=self._stop_event
                )
            except Exception as e:
                logger.exception("Live scan failed")
                self._log(f"Live scan failed: {e}", severity="error")
                result = None
            else:
                self.last_result = result
                self.scan_count += 1

            if result is not None and self.on_result is not None:
                try:
                    self.on_result(result)
                except Exception as e:
                    logger.warning("Live scan result callback failed: %s", e)

            # Skip ticks that elapsed while the scan was running
            now = self._clock()
            next_run += self.interval
            while next_run <= now:
                next_run += self.interval

            if self._stop_event.wait(next_run - now):
                break

    def _log(self, message: str, severity: Severity = "info") -> None:
        event = LogEvent(message=message, severity=severity)
        for sink in self.scanner.sinks:
            try:
                sink.on_log(event)
            except Exception as e:
                logger.warning("Sink %r failed on log event: %s", sink, e)
