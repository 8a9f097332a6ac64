"""
keyword_interpreter.py
------------------------
Keyword-table query interpreter.

Examples with the default rule table:

    "Show me NIUM payouts to Hong Kong"  → platform=NIUM, country=Hong Kong
    "china aggregator payouts"           → country=China, customer_type=Aggregator

Tie-break: "china" and "hong kong" in the same text resolve to China,
because the China rule is listed after the Hong Kong rule. Reordering
keyword_rules in config.yaml changes the outcome.
"""

import logging

from core.keyword_rules import KeywordRule, KeywordRuleTable
from interpreters.base_interpreter import BaseQueryInterpreter

logger = logging.getLogger(__name__)


class KeywordQueryInterpreter(BaseQueryInterpreter):
    """Maps search text onto filters via the configured keyword rules."""

    def __init__(self, rules: KeywordRuleTable | None = None):
        self.rules = rules or KeywordRuleTable()

    def _detect(self, lowered_text: str) -> list[tuple[str, str]]:
        fired = self.rules.matching(lowered_text)
        if fired:
            logger.debug(
                f"Query matched {len(fired)} rule(s): "
                f"{[(r.field, r.value) for r in fired]}"
            )
        return [(rule.field, rule.value) for rule in fired]

    def explain(self, text: str) -> list[KeywordRule]:
        """Rules that fired for text, in evaluation order."""
        return self.rules.matching(self._normalize(text))


def get_interpreter() -> KeywordQueryInterpreter:
    """Returns the default interpreter built from config."""
    return KeywordQueryInterpreter()
