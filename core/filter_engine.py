"""
filter_engine.py
-----------------
Filtering and facet extraction over a loaded payout batch.

Both functions are pure: they never mutate the input sequence and return
fresh lists. Matching is exact and case-sensitive; a record with an empty
categorical value only matches a selector set to "" and never an "all"
substitute.
"""

from typing import Iterable, List, Sequence

from core.models import ALL, FILTER_FIELDS, Facets, FilterSpec, PayoutRecord


def _matches(record: PayoutRecord, constraints: dict[str, str]) -> bool:
    for spec_field, wanted in constraints.items():
        if getattr(record, FILTER_FIELDS[spec_field]) != wanted:
            return False
    return True


def filter_records(records: Sequence[PayoutRecord], spec: FilterSpec) -> List[PayoutRecord]:
    """
    Order-preserving subsequence of records satisfying every constrained
    selector in spec. An unconstrained spec returns all records.
    """
    constraints = spec.active_constraints()
    if not constraints:
        return list(records)
    return [r for r in records if _matches(r, constraints)]


def _distinct_in_order(values: Iterable[str]) -> List[str]:
    # dict preserves insertion order, so this is first-seen order
    return [ALL] + list(dict.fromkeys(values))


def extract_facets(records: Sequence[PayoutRecord]) -> Facets:
    """Selector options built from the full (unfiltered) batch."""
    return Facets(
        countries=_distinct_in_order(r.country for r in records),
        platforms=_distinct_in_order(r.platform for r in records),
        customer_types=_distinct_in_order(r.customer_type for r in records),
    )
