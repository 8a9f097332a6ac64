"""
keyword_rules.py
-----------------
Keyword rule table for the search box.

Loads search.keyword_rules from config.yaml into an ordered list of
(predicate, field, value) rules. A rule fires when any of its keywords is a
substring of the lower-cased search text. Order matters: when two rules
target the same field, the one listed later wins.

Rule updates happen in config.yaml, not in code.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

from core.models import FILTER_FIELDS
from config.config_loader import get_keyword_rules


@dataclass(frozen=True)
class KeywordRule:
    keywords: Tuple[str, ...]
    field: str                       # FilterSpec field name
    value: str

    def matches(self, lowered_text: str) -> bool:
        """Plain substring containment. "uk" also fires inside "fluke"."""
        return any(keyword in lowered_text for keyword in self.keywords)


class KeywordRuleTable:
    """
    Ordered rule table built once at init from config.

    Raises:
        ValueError: If a rule names a field FilterSpec does not have.
    """

    def __init__(self, entries: List[Dict] | None = None):
        self._rules: List[KeywordRule] = []
        self._load_rules(get_keyword_rules() if entries is None else entries)

    def _load_rules(self, entries: List[Dict]) -> None:
        for entry in entries:
            if entry["field"] not in FILTER_FIELDS:
                raise ValueError(
                    f"Keyword rule {entry['keywords']} targets unknown field "
                    f"'{entry['field']}'. Available: {list(FILTER_FIELDS)}"
                )
            self._rules.append(KeywordRule(
                keywords=tuple(k.lower() for k in entry["keywords"]),
                field=entry["field"],
                value=entry["value"],
            ))

    def matching(self, lowered_text: str) -> List[KeywordRule]:
        """Rules that fire for the text, in table order."""
        return [rule for rule in self._rules if rule.matches(lowered_text)]

    def fields(self) -> set[str]:
        return {rule.field for rule in self._rules}

    def __iter__(self) -> Iterator[KeywordRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"KeywordRuleTable(rules={len(self)}, fields={sorted(self.fields())})"
