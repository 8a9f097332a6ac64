"""
models.py
----------
Core domain models. These are the typed contracts between engine layers.

- PayoutRecord: One payout as delivered by a payout source. Read-only.
  Amounts are always floats (missing → 0.0) and categorical fields are
  always strings (missing → ""), so nothing downstream sees None or NaN.

- FilterSpec: The four categorical selectors narrowing the visible set.
  "all" means no constraint on that field.

- MarginResult / DerivedMetrics / Facets: Derived values. Never stored,
  recomputed from the current records on every read.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Optional


ALL = "all"

# FilterSpec field → PayoutRecord attribute it constrains
FILTER_FIELDS = {
    "country": "country",
    "platform": "platform",
    "customer_type": "customer_type",
    "status": "final_status",
}


@dataclass(frozen=True)
class PayoutRecord:
    """A single outbound payout with its revenue and cost figures."""

    # Identity
    id: str
    date: Optional[date] = None

    # Categorical attributes
    customer_name: str = ""
    country: str = ""
    platform: str = ""
    customer_type: str = ""
    final_status: str = ""

    # Revenue & costs (USD)
    wallet_debit_usd: float = 0.0        # Revenue recognized
    usd_equivalent: float = 0.0          # Local-currency payout cost in USD
    extra_fees_usd: float = 0.0
    platform_charges_usd: float = 0.0

    # Upstream override. None = derive; 0.0 is an explicit value.
    margin_percent: Optional[float] = None

    @property
    def total_costs(self) -> float:
        return self.usd_equivalent + self.extra_fees_usd + self.platform_charges_usd


@dataclass(frozen=True)
class FilterSpec:
    """
    Current categorical constraints. Immutable: every change produces a new
    spec via with_field() or replace().
    """

    country: str = ALL
    platform: str = ALL
    customer_type: str = ALL
    status: str = ALL

    def with_field(self, name: str, value: str) -> "FilterSpec":
        """Returns a copy with one selector replaced."""
        if name not in FILTER_FIELDS:
            raise ValueError(
                f"Unknown filter field '{name}'. Available: {list(FILTER_FIELDS)}"
            )
        return replace(self, **{name: value})

    def is_unconstrained(self) -> bool:
        return all(getattr(self, f.name) == ALL for f in fields(self))

    def active_constraints(self) -> dict[str, str]:
        """Selectors that are not "all", in declaration order."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) != ALL
        }


@dataclass(frozen=True)
class MarginResult:
    profit: float
    margin_percent: float            # Rounded for display


@dataclass(frozen=True)
class DerivedMetrics:
    """Portfolio summary over a filtered view."""

    total_volume: float = 0.0            # Σ usd_equivalent
    average_margin_percent: float = 0.0  # total_profit / total_revenue, rounded
    record_count: int = 0
    low_margin_count: int = 0

    # Intermediate sums the average is built from
    total_revenue: float = 0.0
    total_costs: float = 0.0
    total_profit: float = 0.0


@dataclass(frozen=True)
class Facets:
    """Selector option lists. Each list starts with "all"."""

    countries: list[str] = field(default_factory=lambda: [ALL])
    platforms: list[str] = field(default_factory=lambda: [ALL])
    customer_types: list[str] = field(default_factory=lambda: [ALL])
