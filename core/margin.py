"""
margin.py
----------
Per-record profitability.

    costs  = usd_equivalent + extra_fees_usd + platform_charges_usd
    profit = wallet_debit_usd - costs
    margin = profit / revenue * 100   (0 when there is no revenue)

An explicit margin_percent on the record (zero included) overrides the
derived margin for display and alerting. See effective_margin().

Margins are rounded half away from zero, so 12.125 shows as 12.13.
"""

from decimal import Decimal, ROUND_HALF_UP

from core.models import PayoutRecord, MarginResult
from config.config_loader import get_margin_decimals


def round_margin(value: float, decimals: int) -> float:
    """Rounds half away from zero on the exact binary value of `value`."""
    step = Decimal(1).scaleb(-decimals)
    return float(Decimal(value).quantize(step, rounding=ROUND_HALF_UP))


def compute_margin(record: PayoutRecord) -> MarginResult:
    """Derives profit and margin percent for one payout. Never raises."""
    revenue = record.wallet_debit_usd or 0.0
    profit = revenue - record.total_costs
    margin = (profit / revenue) * 100 if revenue > 0 else 0.0
    return MarginResult(
        profit=profit,
        margin_percent=round_margin(margin, get_margin_decimals()),
    )


def effective_margin(record: PayoutRecord) -> float:
    """The margin shown to users: upstream override if present, else derived."""
    if record.margin_percent is not None:
        return float(record.margin_percent)
    return compute_margin(record).margin_percent


def is_low_margin(record: PayoutRecord, threshold: float) -> bool:
    """Strictly below the threshold. A margin equal to it is not flagged."""
    return effective_margin(record) < threshold
