"""
main.py
--------
Command-line entry point for the Payout Analytics Engine.

Loads the payout batch, applies selectors and/or a free-text query, prints
the summary cards, and writes the filtered table to the outputs/ folder.

Usage (from the project root):
    python main.py

    # With optional arguments:
    python main.py --input path/to/payouts.csv
    python main.py --source supabase
    python main.py --query "Show me NIUM payouts to Hong Kong"
    python main.py --country Singapore --status Completed --show-alerts
"""

import sys
import os
import argparse
import logging
from datetime import datetime

# Ensure project root is on path (for VS Code runs from any working directory)
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from pipeline import PayoutReportPipeline, PayoutReport
from core.session_state import (
    describe_filters, edit_search, initial_state, load_failed,
    load_started, load_succeeded, select_filter,
)
from monitoring.margin_monitor import LowMarginMonitor
from sources.payout_source import FetchError, get_payout_source


# =============================================================================
# LOGGING SETUP
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("main")


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Payout Analytics Engine: margins, volume and low-margin alerts for payouts."
    )
    parser.add_argument(
        "--source", type=str, default=None, choices=["csv", "supabase"],
        help="Payout source. Defaults to data_source.type in config.yaml."
    )
    parser.add_argument(
        "--input", type=str, default=None,
        help="Path to a payouts CSV (csv source only). Defaults to the configured sample file."
    )
    parser.add_argument(
        "--query", type=str, default=None,
        help='Free-text search, e.g. "china aggregator payouts". Applied after the selectors.'
    )
    parser.add_argument("--country", type=str, default=None, help="Exact country to keep.")
    parser.add_argument("--platform", type=str, default=None, help="Exact platform to keep.")
    parser.add_argument("--customer-type", type=str, default=None, help="Exact customer type to keep.")
    parser.add_argument("--status", type=str, default=None, help="Exact final status to keep.")
    parser.add_argument(
        "--output-dir", type=str, default=None,
        help="Output directory. Defaults to outputs/ in project root."
    )
    parser.add_argument(
        "--show-alerts", action="store_true", default=False,
        help="Also list individual low-margin payouts and save them to CSV."
    )
    return parser.parse_args(argv)


# =============================================================================
# MAIN
# =============================================================================

def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    output_dir = args.output_dir or os.path.join(PROJECT_ROOT, "outputs")
    os.makedirs(output_dir, exist_ok=True)

    pipeline = PayoutReportPipeline(source=get_payout_source(args.source, csv_path=args.input))

    # --- Load payouts ---
    state = load_started(initial_state())
    try:
        state = load_succeeded(state, pipeline.load())
    except FetchError as e:
        state = load_failed(state, e)
        logger.error(f"Error loading payouts: {state.error}")
        return 1

    # --- Apply selectors, then free text ---
    selectors = {
        "country": args.country,
        "platform": args.platform,
        "customer_type": args.customer_type,
        "status": args.status,
    }
    for name, value in selectors.items():
        if value is not None:
            state = select_filter(state, name, value)

    if args.query:
        state = edit_search(state, args.query, pipeline.interpreter)
        logger.info(f"Query '{args.query}' → {describe_filters(state.filters)}")

    report = pipeline.run(state.records, state.filters)

    # --- Output: filtered table ---
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    table_path = os.path.join(output_dir, f"payouts_{timestamp}.csv")
    report.table.to_csv(table_path, index=False)
    logger.info(f"Payout table saved to: {table_path}")

    _print_summary(report, describe_filters(state.filters))

    # --- Optional: low-margin listing ---
    if args.show_alerts:
        alert_report = LowMarginMonitor().run(report.filtered)
        for alert in alert_report.alerts:
            level = logging.ERROR if alert.severity == "CRITICAL" else logging.WARNING
            logger.log(level, f"[{alert.payout_id}] {alert.severity}: {alert.message}")

        if alert_report.alerts:
            alerts_path = os.path.join(output_dir, f"low_margin_alerts_{timestamp}.csv")
            alert_report.to_frame().to_csv(alerts_path, index=False)
            logger.info(f"Low-margin alerts saved to: {alerts_path}")
        else:
            logger.info("No low-margin payouts.")

    return 0


def _print_summary(report: PayoutReport, filter_label: str):
    """Prints the summary cards to the console."""
    m = report.metrics

    print("\n" + "=" * 80)
    print("  PAYOUT ANALYTICS SUMMARY")
    print("=" * 80)
    print(f"\n  Filters: {filter_label}")
    print("  " + "-" * 60)
    print(f"    {'Total Volume':22s}  ${m.total_volume:>16,.2f}")
    print(f"    {'Avg Margin':22s}  {m.average_margin_percent:>16.2f}%")
    print(f"    {'Total Payouts':22s}  {m.record_count:>17,}")
    print(f"    {'Low Margin Alerts':22s}  {m.low_margin_count:>17,}")

    if report.filtered:
        print("\n  Volume by Platform:")
        print("  " + "-" * 60)
        by_platform = report.table.groupby("platform")["usd_equivalent"].agg(["sum", "count"])
        for platform, row in by_platform.sort_values("sum", ascending=False).iterrows():
            print(f"    {platform or '(none)':30s}  ${row['sum']:>14,.2f}  ({int(row['count'])} payouts)")
    else:
        print("\n  No payouts match the current filters.")

    print("=" * 80 + "\n")


if __name__ == "__main__":
    sys.exit(main())
