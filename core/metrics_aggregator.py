"""
metrics_aggregator.py
----------------------
Reduces a filtered payout view into the portfolio summary cards:

    total volume        Σ usd_equivalent
    average margin      (Σ revenue - Σ costs) / Σ revenue * 100
    payout count        len(view)
    low-margin alerts   records with effective margin < threshold

The average is revenue-weighted (computed from the totals), not a mean of
per-record margins. The threshold comes from config.yaml.
"""

import logging
from typing import Sequence

from core.margin import is_low_margin, round_margin
from core.models import DerivedMetrics, PayoutRecord
from config.config_loader import get_low_margin_threshold, get_margin_decimals

logger = logging.getLogger(__name__)


class MetricsAggregator:
    """
    Usage:
        aggregator = MetricsAggregator()
        metrics = aggregator.aggregate(filtered_records)
    """

    def __init__(self, low_margin_threshold: float | None = None):
        self.low_margin_threshold = (
            get_low_margin_threshold() if low_margin_threshold is None else low_margin_threshold
        )
        self.decimals = get_margin_decimals()

    def aggregate(self, records: Sequence[PayoutRecord]) -> DerivedMetrics:
        """Full recomputation over records. Empty input gives all zeros."""
        if not records:
            return DerivedMetrics()

        total_volume = sum(r.usd_equivalent for r in records)
        total_revenue = sum(r.wallet_debit_usd for r in records)
        total_costs = sum(r.total_costs for r in records)
        total_profit = total_revenue - total_costs

        avg_margin = (total_profit / total_revenue) * 100 if total_revenue > 0 else 0.0

        low_margin_count = sum(
            1 for r in records if is_low_margin(r, self.low_margin_threshold)
        )

        logger.debug(
            f"Aggregated {len(records):,} payouts: volume=${total_volume:,.2f}, "
            f"avg margin={avg_margin:.2f}%, low-margin={low_margin_count}."
        )

        return DerivedMetrics(
            total_volume=total_volume,
            average_margin_percent=round_margin(avg_margin, self.decimals),
            record_count=len(records),
            low_margin_count=low_margin_count,
            total_revenue=total_revenue,
            total_costs=total_costs,
            total_profit=total_profit,
        )
