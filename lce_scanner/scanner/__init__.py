"""Scan orchestration, events and live scanning."""

from .events import ActivityLog, LogEvent, LoggingSink, ProgressEvent, ScanSink
from .orchestrator import OpportunityScanner, ScanResult, ScanState, ScanStatus
from .settings import DEFAULT_SYMBOLS, ScanSettings, load_scan_config

__all__ = [
    "ActivityLog",
    "DEFAULT_SYMBOLS",
    "LogEvent",
    "LoggingSink",
    "OpportunityScanner",
    "ProgressEvent",
    "ScanResult",
    "ScanSettings",
    "ScanSink",
    "ScanState",
    "ScanStatus",
    "load_scan_config",
]
