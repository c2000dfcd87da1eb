"""Console output formatter for scan results and the activity log."""

from datetime import datetime
from typing import Optional, Sequence

from ..data.normalizer import RiskConfig
from ..models.option import NormalizedOpportunity
from ..risk.position_sizing import Allocation, max_contracts
from ..scanner.events import LogEvent
from ..scanner.orchestrator import ScanResult

SEVERITY_MARKERS = {
    "info": " ",
    "success": "+",
    "warning": "!",
    "error": "x",
}


def print_header(strategy: str, symbol_count: int):
    """Print scan session header.

    Args:
        strategy: Strategy display name
        symbol_count: Number of symbols in the watchlist
    """
    print("\n" + "=" * 100)
    print(f"  OPTIONS OPPORTUNITY SCANNER - {strategy}")
    print(f"  Watchlist: {symbol_count} symbols")
    print("=" * 100)


def print_summary(result: ScanResult, displayed: int):
    """Print summary of a scan run."""
    print(f"\nSummary:")
    print(f"  Status: {result.status.value}")
    print(f"  Symbols scanned: {result.symbols_scanned}/{result.total_symbols}")
    print(f"  Symbol errors: {len(result.errors)}")
    print(f"  Opportunities ranked: {len(result.opportunities)}")
    print(f"  Displaying top {displayed} results\n")


def print_opportunities(
    opportunities: Sequence[NormalizedOpportunity],
    config: Optional[RiskConfig] = None,
):
    """Print ranked opportunities as a compact table.

    Args:
        opportunities: Opportunities sorted by score
        config: Risk configuration; when given, adds a max-contracts column
    """
    if not opportunities:
        print("No opportunities found. Try adjusting your strategy or risk parameters.")
        return

    width = 110
    print("\nTop Opportunities:")
    print("-" * width)

    header = (
        f"{'Rank':>4} {'Symbol':<6} {'Type':<4} {'Strike':>8} {'Exp':^10} {'DTE':>4} "
        f"{'Premium':>8} {'Bid/Ask':^13} {'Volume':>8} {'LCE':>4} {'Liq':<6} "
        f"{'Delta':>6} {'Theta':>6}"
    )
    if config is not None:
        header += f" {'Max':>4}"
    print(header)
    print("-" * width)

    for rank, opp in enumerate(opportunities, start=1):
        bid_ask = f"{opp.bid:.2f}/{opp.ask:.2f}"
        row = (
            f"{rank:>4} {opp.symbol:<6} {opp.contract_type:<4} {opp.strike:>8.2f} "
            f"{opp.expiration.isoformat():^10} {opp.days_to_expiry:>4} "
            f"{'$' + format(opp.premium, '.2f'):>8} {bid_ask:^13} {opp.volume:>8,} "
            f"{opp.lce_score:>4} {opp.liquidity:<6} {opp.delta:>6.2f} {opp.theta:>6.2f}"
        )
        if config is not None:
            row += f" {max_contracts(opp, config):>4}"
        print(row)

    print("-" * width)


def print_allocations(allocations: Sequence[Allocation], remaining: float, config: RiskConfig):
    """Print suggested position sizes against the portfolio budget."""
    print(f"\nPosition Sizing (max ${config.max_risk_per_trade:,.0f}/trade, "
          f"${config.portfolio_risk_limit:,.0f} portfolio):")
    if not allocations:
        print("  No opportunity fits the remaining risk budget.")
        return

    for alloc in allocations:
        opp = alloc.opportunity
        print(f"  {opp.contract_id:<28} {alloc.contracts:>3} x ${opp.premium:.2f} "
              f"= ${alloc.risk_dollars:,.2f} at risk")
    print(f"  Remaining budget: ${remaining:,.2f}")


def format_log_entry(event: LogEvent) -> str:
    marker = SEVERITY_MARKERS.get(event.severity, " ")
    return f"[{event.timestamp.strftime('%H:%M:%S')}] {marker} {event.message}"


def print_activity_log(entries: Sequence[LogEvent], limit: Optional[int] = None):
    """Print activity-log entries (newest first, as stored)."""
    print("\nActivity Log:")
    for event in list(entries)[:limit]:
        print(f"  {format_log_entry(event)}")


def print_last_scan(last_scan_time: Optional[datetime]):
    if last_scan_time is not None:
        print(f"Last scan: {last_scan_time.astimezone().strftime('%H:%M:%S')}")
