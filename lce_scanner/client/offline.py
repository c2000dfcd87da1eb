"""File-backed chain providers for offline scans and chain capture."""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping

from ..data.chain_parser import dump_chain_to_json, load_chain_from_json
from ..data.validators import validate_symbol
from ..utils.error_handling import NotFoundError

logger = logging.getLogger("lce_scanner.offline")


class JsonChainProvider:
    """Serves chain payloads saved as <directory>/<SYMBOL>.json."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def fetch_option_chain(self, symbol: str) -> Dict[str, Any]:
        path = self.directory / f"{validate_symbol(symbol)}.json"
        if not path.exists():
            raise NotFoundError(f"No saved chain for {symbol} in {self.directory}", status=404)
        return load_chain_from_json(path)


class RecordingProvider:
    """Wraps a provider and saves every fetched payload for later offline scans."""

    def __init__(self, provider, directory: str | Path):
        self.provider = provider
        self.directory = Path(directory)

    def fetch_option_chain(self, symbol: str) -> Mapping[str, Any]:
        payload = self.provider.fetch_option_chain(symbol)
        path = dump_chain_to_json(payload, self.directory / f"{symbol.upper()}.json")
        logger.debug("Saved %s chain to %s", symbol, path)
        return payload
