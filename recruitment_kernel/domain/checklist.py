"""
Background-check checklist (``recruitment_kernel.domain.checklist``).

Pure value objects for the fixed set of criteria a reviewer ticks during a
background check.  ZERO I/O.

The reference checklist has five criteria.  Their order is the display order
and the storage order of a selection.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from recruitment_kernel.exceptions import UnknownCriterionError

PASS_MARKER = "✅"
FAIL_MARKER = "❌"


@dataclass(frozen=True)
class ChecklistCriterion:
    """One checklist item: a stable storage key and a display label."""

    key: str
    label: str


DEFAULT_CRITERIA: tuple[ChecklistCriterion, ...] = (
    ChecklistCriterion("age", "60+ day account age"),
    ChecklistCriterion("safechat", "No Safechat"),
    ChecklistCriterion("seen", "Seen 2+ days by recommender"),
    ChecklistCriterion("comms", "In communications server"),
    ChecklistCriterion("history", "No major history/MR restrictions"),
)


@dataclass(frozen=True)
class Checklist:
    """An ordered, fixed set of criteria."""

    criteria: tuple[ChecklistCriterion, ...] = DEFAULT_CRITERIA

    def __post_init__(self) -> None:
        if not self.criteria:
            raise ValueError("Checklist requires at least one criterion")
        keys = [c.key for c in self.criteria]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate checklist keys: {keys}")

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(c.key for c in self.criteria)

    @property
    def size(self) -> int:
        return len(self.criteria)

    def normalize(self, values: Iterable[str]) -> tuple[str, ...]:
        """Validate a selection and return it de-duplicated in checklist order.

        Raises:
            UnknownCriterionError: If any value is not a checklist key.
        """
        chosen = set(values)
        unknown = sorted(chosen - set(self.keys))
        if unknown:
            raise UnknownCriterionError(unknown)
        return tuple(k for k in self.keys if k in chosen)

    def is_complete(self, selected: Iterable[str]) -> bool:
        return set(self.keys) <= set(selected)

    def lines(self, selected: Iterable[str]) -> list[str]:
        """Render one ``<marker> <label>`` line per criterion."""
        chosen = set(selected)
        return [
            f"{PASS_MARKER if c.key in chosen else FAIL_MARKER} {c.label}"
            for c in self.criteria
        ]
