"""LCE options opportunity scanner for the Schwab market-data API."""

__version__ = "0.1.0"
