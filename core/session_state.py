"""
session_state.py
-----------------
Dashboard session state as an immutable value plus pure transitions.

Every user or loader event produces a new DashboardState from the previous
one; nothing is mutated in place. The UI keeps exactly one current state
and swaps it on each event:

    state = initial_state()
    state = load_succeeded(state, records)
    state = edit_search(state, "nium payouts to hong kong", interpreter)
    view  = derive_view(state, aggregator)

Derived data (filtered rows, metrics, facets) is never stored on the
state. derive_view() recomputes it from the current records and filters.
"""

from dataclasses import dataclass, field, replace
from typing import List, Sequence, Tuple

from core.filter_engine import extract_facets, filter_records
from core.metrics_aggregator import MetricsAggregator
from core.models import ALL, DerivedMetrics, Facets, FilterSpec, PayoutRecord
from config.config_loader import get_min_query_length
from interpreters.base_interpreter import BaseQueryInterpreter


LOADING = "loading"
READY = "ready"
ERROR = "error"


@dataclass(frozen=True)
class DashboardState:
    records: Tuple[PayoutRecord, ...] = ()
    filters: FilterSpec = field(default_factory=FilterSpec)
    search_text: str = ""
    status: str = LOADING
    error: str | None = None
    revision: int = 0


@dataclass(frozen=True)
class DashboardView:
    filtered: List[PayoutRecord]
    metrics: DerivedMetrics
    facets: Facets


def _next(state: DashboardState, **changes) -> DashboardState:
    return replace(state, revision=state.revision + 1, **changes)


# =============================================================================
# LOAD LIFECYCLE
# =============================================================================

def initial_state() -> DashboardState:
    return DashboardState()


def load_started(state: DashboardState) -> DashboardState:
    """Refresh or retry. Clears any previous error."""
    return _next(state, status=LOADING, error=None)


def load_succeeded(state: DashboardState, records: Sequence[PayoutRecord]) -> DashboardState:
    """Replaces the batch. Filters and search text carry over."""
    return _next(state, records=tuple(records), status=READY, error=None)


def load_failed(state: DashboardState, error: Exception | str) -> DashboardState:
    """Error state shows no data, so the previous batch is dropped."""
    return _next(state, records=(), status=ERROR, error=str(error))


# =============================================================================
# FILTER EVENTS
# =============================================================================

def select_filter(state: DashboardState, name: str, value: str) -> DashboardState:
    """
    A direct selector change.

    Raises:
        ValueError: If name is not a FilterSpec field.
    """
    return _next(state, filters=state.filters.with_field(name, value))


def edit_search(
    state: DashboardState,
    text: str,
    interpreter: BaseQueryInterpreter,
    min_query_length: int | None = None,
) -> DashboardState:
    """
    Stores the search text and, once it is longer than min_query_length,
    re-derives the filters from it. Shorter text leaves filters untouched.
    """
    if min_query_length is None:
        min_query_length = get_min_query_length()

    filters = state.filters
    if len(text) > min_query_length:
        filters = interpreter.interpret(text, state.filters)

    return _next(state, search_text=text, filters=filters)


def reset_filters(state: DashboardState) -> DashboardState:
    return _next(state, filters=FilterSpec(), search_text="")


# =============================================================================
# DERIVED VIEW
# =============================================================================

def derive_view(state: DashboardState, aggregator: MetricsAggregator) -> DashboardView:
    """Filtered rows, summary metrics and selector options for the state."""
    if state.status != READY:
        return DashboardView(filtered=[], metrics=DerivedMetrics(), facets=extract_facets([]))

    filtered = filter_records(state.records, state.filters)
    return DashboardView(
        filtered=filtered,
        metrics=aggregator.aggregate(filtered),
        facets=extract_facets(state.records),
    )


def describe_filters(filters: FilterSpec) -> str:
    """Human-readable active filter summary, e.g. "Country: China, Platform: NIUM"."""
    labels = {
        "country": "Country",
        "platform": "Platform",
        "customer_type": "Type",
        "status": "Status",
    }
    active = filters.active_constraints()
    if not active:
        return ALL.capitalize()
    return ", ".join(f"{labels[name]}: {value}" for name, value in active.items())
