"""
pipeline.py
------------
Main orchestration layer. Wires together:
    1. Payout source         →  fetches the record batch
    2. Filter engine         →  narrows it with the current FilterSpec
    3. Metrics aggregator    →  summary cards for the filtered view
    4. Facet extractor       →  selector options from the full batch
    5. Table serialization   →  one display row per filtered payout

Both the CLI and the Streamlit app go through this. Everything else is
internal machinery.

Usage:
    from pipeline import PayoutReportPipeline

    pipeline = PayoutReportPipeline()
    records = pipeline.load()
    report = pipeline.run(records, FilterSpec(country="Singapore"))
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import pandas as pd

from core.filter_engine import extract_facets, filter_records
from core.margin import compute_margin, effective_margin
from core.metrics_aggregator import MetricsAggregator
from core.models import DerivedMetrics, Facets, FilterSpec, PayoutRecord
from interpreters.keyword_interpreter import get_interpreter
from sources.payout_source import get_payout_source

logger = logging.getLogger(__name__)

TABLE_COLUMNS = [
    "id", "date", "customer_name", "country", "platform", "customer_type",
    "usd_equivalent", "wallet_debit_usd", "profit", "margin_percent",
    "low_margin", "final_status",
]


@dataclass
class PayoutReport:
    filtered: List[PayoutRecord]
    metrics: DerivedMetrics
    facets: Facets
    table: pd.DataFrame


class PayoutReportPipeline:
    """
    End-to-end payout reporting pipeline.

    Orchestrates fetch → filter → aggregate → serialize without exposing
    internal objects to callers.
    """

    def __init__(self, source=None):
        """
        Args:
            source: Anything with fetch_all_payouts(). Defaults to the
                source configured in config.yaml.
        """
        self.source = source or get_payout_source()
        self.aggregator = MetricsAggregator()
        self.interpreter = get_interpreter()

        logger.info(
            f"Pipeline initialized. Source: {self.source!r}. "
            f"Low-margin threshold: {self.aggregator.low_margin_threshold}%. "
            f"Keyword rules: {len(self.interpreter.rules)}."
        )

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def load(self) -> List[PayoutRecord]:
        """
        Fetch the full payout batch.

        Raises:
            FetchError: If the source cannot deliver the batch.
        """
        logger.info("Fetching payouts...")
        records = self.source.fetch_all_payouts()
        logger.info(f"Loaded {len(records):,} payouts.")
        return records

    def run(self, records: Sequence[PayoutRecord], filters: FilterSpec | None = None) -> PayoutReport:
        """
        Build the report for one filter state.

        Args:
            records: The full (unfiltered) batch.
            filters: Current selectors. Defaults to no constraints.
        """
        filters = filters or FilterSpec()

        filtered = filter_records(records, filters)
        logger.info(
            f"Filtered {len(records):,} → {len(filtered):,} payouts "
            f"(constraints: {filters.active_constraints() or 'none'})."
        )

        return PayoutReport(
            filtered=filtered,
            metrics=self.aggregator.aggregate(filtered),
            facets=extract_facets(records),
            table=self.build_table(filtered),
        )

    def interpret(self, text: str, filters: FilterSpec) -> FilterSpec:
        """Free-text search → filters. No length gate; see edit_search()."""
        return self.interpreter.interpret(text, filters)

    # -------------------------------------------------------------------------
    # OUTPUT SERIALIZATION
    # -------------------------------------------------------------------------

    def build_table(self, records: Sequence[PayoutRecord]) -> pd.DataFrame:
        """
        Flat display table, newest payout first. Undated payouts sort last;
        ties keep filter order.
        """
        if not records:
            return pd.DataFrame(columns=TABLE_COLUMNS)

        threshold = self.aggregator.low_margin_threshold
        rows = []
        for r in records:
            margin = effective_margin(r)
            rows.append({
                "id": r.id,
                "date": r.date,
                "customer_name": r.customer_name,
                "country": r.country,
                "platform": r.platform,
                "customer_type": r.customer_type,
                "usd_equivalent": r.usd_equivalent,
                "wallet_debit_usd": r.wallet_debit_usd,
                "profit": compute_margin(r).profit,
                "margin_percent": margin,
                "low_margin": margin < threshold,
                "final_status": r.final_status,
            })

        df = pd.DataFrame(rows, columns=TABLE_COLUMNS)
        df["date"] = pd.to_datetime(df["date"])
        df = df.sort_values("date", ascending=False, kind="stable", na_position="last").reset_index(drop=True)
        df["date"] = df["date"].dt.date

        return df
