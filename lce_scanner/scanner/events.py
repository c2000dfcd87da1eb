"""Scan events and the sinks that receive them.

A sink receives progress updates, activity-log entries and the final
ranked list. Sinks are called synchronously from the scan thread and must
return quickly.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, List, Literal, Optional, Sequence

from ..models.option import NormalizedOpportunity

logger = logging.getLogger("lce_scanner.events")

Severity = Literal["info", "success", "warning", "error"]

SEVERITY_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

ACTIVITY_LOG_SIZE = 100


@dataclass(frozen=True)
class ProgressEvent:
    """Scan progress: current_index symbols done out of total (0 at scan start)."""

    current_index: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return int(self.current_index * 100 / self.total + 0.5)


@dataclass(frozen=True)
class LogEvent:
    """One activity-log entry."""

    message: str
    severity: Severity = "info"
    timestamp: datetime = field(default_factory=datetime.now)


class ScanSink:
    """Base sink; every hook is a no-op."""

    def on_progress(self, event: ProgressEvent) -> None:
        pass

    def on_log(self, event: LogEvent) -> None:
        pass

    def on_results(self, opportunities: Sequence[NormalizedOpportunity]) -> None:
        pass


class ActivityLog(ScanSink):
    """Keeps the newest activity entries, latest progress and latest results."""

    def __init__(self, maxlen: int = ACTIVITY_LOG_SIZE):
        self._entries: Deque[LogEvent] = deque(maxlen=maxlen)
        self._lock = threading.Lock()
        self.progress: Optional[ProgressEvent] = None
        self.results: List[NormalizedOpportunity] = []

    def on_progress(self, event: ProgressEvent) -> None:
        self.progress = event

    def on_log(self, event: LogEvent) -> None:
        with self._lock:
            self._entries.appendleft(event)

    def on_results(self, opportunities: Sequence[NormalizedOpportunity]) -> None:
        self.results = list(opportunities)

    @property
    def entries(self) -> List[LogEvent]:
        """Entries, newest first."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class LoggingSink(ScanSink):
    """Mirrors activity-log entries into Python logging."""

    def __init__(self, logger_name: str = "lce_scanner.activity"):
        self._logger = logging.getLogger(logger_name)

    def on_progress(self, event: ProgressEvent) -> None:
        self._logger.debug("Progress %d/%d (%d%%)", event.current_index, event.total, event.percent)

    def on_log(self, event: LogEvent) -> None:
        self._logger.log(SEVERITY_LEVELS.get(event.severity, logging.INFO), event.message)

    def on_results(self, opportunities: Sequence[NormalizedOpportunity]) -> None:
        self._logger.info("Published %d ranked opportunities", len(opportunities))
