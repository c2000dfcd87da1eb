"""Market-data providers: the Schwab REST client and file-backed providers."""

from .offline import JsonChainProvider, RecordingProvider
from .schwab import SchwabClient

__all__ = ["JsonChainProvider", "RecordingProvider", "SchwabClient"]
