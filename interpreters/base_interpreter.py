"""
base_interpreter.py
---------------------
Abstract base class for search query interpreters.

An interpreter turns free text into a FilterSpec. The shared contract lives
here so every implementation behaves the same at the edges:

    - The result always starts from the caller's current spec.
    - Only fields the text gives evidence for are overwritten; everything
      else is left exactly as it was (sticky filters, not a reset).
    - Detected assignments are applied in order, so a later assignment to
      the same field replaces an earlier one.

Concrete interpreters only need to implement:
    - _detect(): ordered (field, value) assignments found in the text
"""

from abc import ABC, abstractmethod
from dataclasses import replace

from core.models import FilterSpec


class BaseQueryInterpreter(ABC):
    """
    Abstract base for query interpreters.

    Subclasses implement _detect(). This class handles normalization and
    the overwrite-in-order merge into the current spec.
    """

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def interpret(self, text: str, current: FilterSpec) -> FilterSpec:
        """
        Map free text onto a new FilterSpec.

        No length gate is applied here; callers decide when text is long
        enough to interpret. Unmatched text returns a spec equal to current.
        """
        assignments = self._detect(self._normalize(text))

        updates: dict[str, str] = {}
        for field_name, value in assignments:
            updates[field_name] = value

        return replace(current, **updates)

    # -------------------------------------------------------------------------
    # ABSTRACT METHODS
    # -------------------------------------------------------------------------

    @abstractmethod
    def _detect(self, lowered_text: str) -> list[tuple[str, str]]:
        """
        Ordered (field, value) assignments evidenced by the text.
        Later entries win over earlier ones for the same field.
        """
        ...

    # -------------------------------------------------------------------------
    # SHARED HELPERS
    # -------------------------------------------------------------------------

    @staticmethod
    def _normalize(text: str | None) -> str:
        return (text or "").lower()
