"""
margin_monitor.py
------------------
Low-margin alerting for payouts.

The summary cards only show how many payouts fall under the low-margin
threshold. This monitor lists them, one alert per payout, so ops can see
which customer/platform/corridor is responsible.

Severity:
    - CRITICAL: effective margin below zero (the payout lost money)
    - WARNING:  margin between zero and the threshold

The threshold comes from config.yaml and is the same one the metrics
aggregator counts against, so total_alerts == low_margin_count.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence

import pandas as pd

from core.margin import compute_margin, effective_margin
from core.models import PayoutRecord
from config.config_loader import get_low_margin_threshold

logger = logging.getLogger(__name__)


@dataclass
class MarginAlert:
    """A single low-margin payout."""
    payout_id: str
    severity: str                    # "WARNING" | "CRITICAL"
    customer_name: str
    country: str
    platform: str
    margin_percent: float            # Effective margin (override or derived)
    profit: float
    threshold: float
    message: str


@dataclass
class MarginAlertReport:
    """Full alert listing, one per run."""
    run_timestamp: str
    threshold: float
    alerts: List[MarginAlert] = field(default_factory=list)
    summary: dict = field(default_factory=dict)

    def to_frame(self) -> pd.DataFrame:
        columns = [
            "payout_id", "severity", "customer_name", "country", "platform",
            "margin_percent", "profit", "threshold", "message",
        ]
        return pd.DataFrame([a.__dict__ for a in self.alerts], columns=columns)


class LowMarginMonitor:
    """
    Usage:
        monitor = LowMarginMonitor()
        report = monitor.run(filtered_records)
    """

    def __init__(self, threshold: float | None = None):
        self.threshold = get_low_margin_threshold() if threshold is None else threshold

    def run(self, records: Sequence[PayoutRecord]) -> MarginAlertReport:
        alerts: List[MarginAlert] = []
        for record in records:
            margin = effective_margin(record)
            if margin < self.threshold:
                alerts.append(self._build_alert(record, margin))

        summary = {
            "total_alerts": len(alerts),
            "critical_alerts": sum(1 for a in alerts if a.severity == "CRITICAL"),
            "warning_alerts": sum(1 for a in alerts if a.severity == "WARNING"),
        }
        if alerts:
            logger.info(
                f"{summary['total_alerts']} low-margin payouts "
                f"({summary['critical_alerts']} loss-making)."
            )

        return MarginAlertReport(
            run_timestamp=datetime.now().isoformat(),
            threshold=self.threshold,
            alerts=alerts,
            summary=summary,
        )

    def _build_alert(self, record: PayoutRecord, margin: float) -> MarginAlert:
        severity = "CRITICAL" if margin < 0 else "WARNING"
        source = "upstream" if record.margin_percent is not None else "derived"
        return MarginAlert(
            payout_id=record.id,
            severity=severity,
            customer_name=record.customer_name,
            country=record.country,
            platform=record.platform,
            margin_percent=margin,
            profit=compute_margin(record).profit,
            threshold=self.threshold,
            message=(
                f"{record.customer_name or 'Unknown customer'} via {record.platform or 'unknown platform'} "
                f"to {record.country or 'unknown country'}: {source} margin {margin:.2f}% "
                f"< {self.threshold:.2f}%."
            ),
        )
