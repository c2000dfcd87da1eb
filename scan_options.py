#!/usr/bin/env python3
"""Scan option chains for LCE-ranked trade opportunities.

Usage:
    # Live Schwab data (token from SCHWAB_ACCESS_TOKEN)
    python3 scan_options.py SPY QQQ AAPL --strategy HIGH_VALUE

    # Default watchlist and settings from YAML
    python3 scan_options.py --config config/scanner.yaml

    # Offline, from saved <SYMBOL>.json chain payloads
    python3 scan_options.py SPY --chains-dir data/chains

    # Size positions against the risk budget and export to CSV
    python3 scan_options.py SPY QQQ --allocate --output results/scan.csv

    # Re-scan every 60 seconds until Ctrl-C
    python3 scan_options.py --live --interval 60
"""

import argparse
import os
import sys
import time
from dataclasses import replace

from lce_scanner.client import JsonChainProvider, RecordingProvider, SchwabClient
from lce_scanner.data.normalizer import RiskConfig
from lce_scanner.output.console import (
    print_activity_log,
    print_allocations,
    print_header,
    print_last_scan,
    print_opportunities,
    print_summary,
)
from lce_scanner.output.table import (
    SORT_COLUMNS,
    export_opportunities_csv,
    search_opportunities,
    sort_opportunities,
)
from lce_scanner.risk.position_sizing import allocate_portfolio
from lce_scanner.scanner import (
    ActivityLog,
    LoggingSink,
    OpportunityScanner,
    ScanSettings,
    load_scan_config,
)
from lce_scanner.scanner.live import LiveScanner
from lce_scanner.strategies.filters import Strategy, strategy_label
from lce_scanner.utils.error_handling import ScannerError
from lce_scanner.utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Scan option chains for LCE-ranked opportunities',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Strategies: {', '.join(s.value for s in Strategy)}",
    )
    parser.add_argument('symbols', nargs='*', help='Symbols to scan (default: watchlist)')
    parser.add_argument('--strategy', help='Strategy id (default: HIGH_MOMENTUM)')
    parser.add_argument('--config', help='YAML file with risk/scan settings')
    parser.add_argument('--token', help='Schwab access token (or set SCHWAB_ACCESS_TOKEN)')
    parser.add_argument('--chains-dir', help='Scan saved <SYMBOL>.json chains instead of the API')
    parser.add_argument('--save-chains', help='Directory to save fetched chain payloads')
    parser.add_argument('--max-price', type=float, help='Override max option price')
    parser.add_argument('--min-volume', type=int, help='Override minimum volume')
    parser.add_argument('--delay', type=float, help='Seconds between symbol fetches')
    parser.add_argument('--live', action='store_true', help='Keep re-scanning on an interval')
    parser.add_argument('--interval', type=float, help='Seconds between live scans (default: 60)')
    parser.add_argument('--top', type=int, default=25, help='Results to display (default: 25)')
    parser.add_argument('--search', help='Only show results whose symbol or type contains this text')
    parser.add_argument('--sort', choices=sorted(SORT_COLUMNS), help='Column to sort displayed results by')
    parser.add_argument('--ascending', action='store_true', help='Sort ascending instead of descending')
    parser.add_argument('--allocate', action='store_true',
                        help='Suggest position sizes within the risk budget')
    parser.add_argument('--output', help='Write ranked results to this CSV file')
    parser.add_argument('--log-level', default='WARNING', help='Logging level (default: WARNING)')
    parser.add_argument('--log-file', help='Optional log file')
    return parser


def load_settings(args) -> tuple[RiskConfig, ScanSettings]:
    if args.config:
        risk_config, settings = load_scan_config(args.config)
    else:
        risk_config, settings = RiskConfig(), ScanSettings()

    overrides = {}
    if args.max_price is not None:
        overrides['max_option_price'] = args.max_price
    if args.min_volume is not None:
        overrides['min_volume'] = args.min_volume
    if overrides:
        risk_config = replace(risk_config, **overrides)

    setting_overrides = {}
    if args.delay is not None:
        setting_overrides['symbol_delay'] = args.delay
    if args.interval is not None:
        setting_overrides['rescan_interval'] = args.interval
    if args.strategy:
        setting_overrides['strategy'] = args.strategy
    if args.symbols:
        setting_overrides['symbols'] = tuple(args.symbols)
    if setting_overrides:
        settings = replace(settings, **setting_overrides)

    return risk_config, settings


def build_provider(args):
    if args.chains_dir:
        provider = JsonChainProvider(args.chains_dir)
    else:
        token = args.token or os.getenv('SCHWAB_ACCESS_TOKEN')
        if not token:
            print("❌ Error: No access token provided")
            print("Set SCHWAB_ACCESS_TOKEN or use --token, or scan offline with --chains-dir")
            return None
        provider = SchwabClient(access_token=token)

    if args.save_chains:
        provider = RecordingProvider(provider, args.save_chains)
    return provider


def report(scanner, result, risk_config, args):
    shown = search_opportunities(result.opportunities, args.search)
    if args.sort:
        shown = sort_opportunities(shown, args.sort, descending=not args.ascending)
    shown = shown[:args.top]

    print_summary(result, displayed=len(shown))
    print_opportunities(shown, config=risk_config)
    if args.allocate:
        allocations, remaining = allocate_portfolio(result.opportunities, risk_config)
        print_allocations(allocations, remaining, risk_config)
    print_last_scan(scanner.last_scan_time)

    if args.output and result.ok:
        path = export_opportunities_csv(result.opportunities, args.output, config=risk_config)
        print(f"📁 Saved {len(result.opportunities)} opportunities to: {path}")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level, log_file=args.log_file)

    try:
        risk_config, settings = load_settings(args)
    except ScannerError as e:
        print(f"❌ Configuration error: {e}")
        return 2

    provider = build_provider(args)
    if provider is None:
        return 2

    activity = ActivityLog()
    scanner = OpportunityScanner(provider, config=risk_config, settings=settings, sinks=[activity, LoggingSink()])
    print_header(strategy_label(settings.strategy), len(settings.symbols))

    if not args.live:
        result = scanner.scan()
        print_activity_log(activity.entries, limit=10)
        report(scanner, result, risk_config, args)
        return 0 if result.ok else 1

    live = LiveScanner(
        scanner,
        on_result=lambda result: report(scanner, result, risk_config, args),
    )
    live.start()
    try:
        while live.running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("\nStopping live scan...")
    finally:
        live.stop(timeout=settings.rescan_interval)
        print_activity_log(activity.entries, limit=10)
    return 0


if __name__ == '__main__':
    sys.exit(main())
