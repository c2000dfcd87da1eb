"""Scan settings and YAML configuration loading."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Tuple

import yaml

from ..data.normalizer import RiskConfig
from ..utils.error_handling import ConfigurationError

logger = logging.getLogger("lce_scanner.settings")

DEFAULT_SYMBOLS: Tuple[str, ...] = (
    'SPY', 'QQQ', 'AAPL', 'TSLA', 'MSFT', 'GOOGL', 'AMZN', 'NVDA', 'META', 'NFLX',
    'AMD', 'BABA', 'DIS', 'UBER', 'PYPL', 'ZM', 'CRM', 'SHOP', 'SQ', 'ROKU',
    'PTON', 'GME', 'AMC', 'BB',
)


@dataclass(frozen=True)
class ScanSettings:
    """Pacing and defaults for scan runs.

    Attributes:
        symbol_delay: Pause between symbol fetches in seconds, to stay under
            the provider's rate limit
        rescan_interval: Seconds between live-scan triggers
        strategy: Default strategy id
        symbols: Default watchlist
    """

    symbol_delay: float = 0.1
    rescan_interval: float = 60.0
    strategy: str = "HIGH_MOMENTUM"
    symbols: Tuple[str, ...] = DEFAULT_SYMBOLS

    def __post_init__(self):
        if self.symbol_delay < 0:
            raise ConfigurationError(f"symbol_delay cannot be negative, got {self.symbol_delay}")
        if self.rescan_interval <= 0:
            raise ConfigurationError(f"rescan_interval must be positive, got {self.rescan_interval}")

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "ScanSettings":
        """Create ScanSettings from dictionary (e.g., the `scan` YAML section)."""
        try:
            symbols = config.get('symbols')
            return cls(
                symbol_delay=float(config.get('symbol_delay', 0.1)),
                rescan_interval=float(config.get('rescan_interval', 60.0)),
                strategy=str(config.get('strategy', 'HIGH_MOMENTUM')),
                symbols=tuple(symbols) if symbols else DEFAULT_SYMBOLS,
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid scan settings: {e}")


def load_scan_config(config_path: str | Path) -> Tuple[RiskConfig, ScanSettings]:
    """Load risk and scan settings from a YAML file.

    Expected layout::

        risk:
          max_option_price: 500
          min_volume: 500
          ...
        scan:
          strategy: HIGH_MOMENTUM
          symbol_delay: 0.1
          rescan_interval: 60
          symbols: [SPY, QQQ]

    Missing sections fall back to defaults.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        logger.error("Config file not found: %s", config_path)
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            params = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(params, Mapping):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    risk_section = params.get('risk') or {}
    scan_section = params.get('scan') or {}
    if not isinstance(risk_section, Mapping) or not isinstance(scan_section, Mapping):
        raise ConfigurationError(f"'risk' and 'scan' sections in {config_path} must be mappings")

    risk_config = RiskConfig.from_dict(risk_section)
    settings = ScanSettings.from_dict(scan_section)
    logger.info("Loaded configuration from %s", config_path)
    return risk_config, settings
