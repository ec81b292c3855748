"""
Ordering & grouping engine (``procurement_kernel.domain.ordering``).

Responsibility
--------------
Keep a requisition's lines in their display order and find the contiguous
"main group" runs used for subtotal rows.

Architecture position
---------------------
**Kernel domain layer** -- pure functions, ZERO I/O.  Items are duck-typed:
anything with ``is_priority``, ``category`` and ``amount`` works.

Invariants enforced
-------------------
* Priority items precede non-priority items.
* Within each partition, categories ascend case-insensitively and empty
  categories sort last.
* Sorting is stable, so re-sorting a sorted list is a no-op.  Untouched
  lines never reshuffle after an edit.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, TypeVar

from procurement_kernel.domain.money import sum_amounts

PRIORITY_GROUP = "PRIORITY / SPECIAL"
UNCATEGORIZED_GROUP = "Uncategorized"

T = TypeVar("T")


@dataclass(frozen=True)
class GroupBoundary:
    """A contiguous run of lines sharing one main group.

    ``end_index`` is inclusive.
    """
    start_index: int
    end_index: int
    group_name: str
    subtotal: Decimal

    @property
    def size(self) -> int:
        return self.end_index - self.start_index + 1


def _sort_key(item: Any) -> tuple[int, int, str]:
    category = (item.category or "").strip()
    return (
        0 if item.is_priority else 1,
        0 if category else 1,
        category.casefold(),
    )


def sort_items(items: Iterable[T]) -> tuple[T, ...]:
    """Stable sort into display order."""
    return tuple(sorted(items, key=_sort_key))


def is_sorted(items: Sequence[Any]) -> bool:
    """True when ``sort_items`` would leave ``items`` as they are."""
    return all(
        _sort_key(items[i - 1]) <= _sort_key(items[i])
        for i in range(1, len(items))
    )


def main_group_of(
    item: Any,
    priority_label: str = PRIORITY_GROUP,
    uncategorized_label: str = UNCATEGORIZED_GROUP,
) -> str:
    """Coarse grouping key: the priority band or the top-level category.

    A category with nothing before its first ``/`` (``"/Sub"``) is treated
    as uncategorized.
    """
    if item.is_priority:
        return priority_label
    main = (item.category or "").split("/", 1)[0].strip()
    return main or uncategorized_label


def compute_group_boundaries(
    items: Sequence[Any],
    priority_label: str = PRIORITY_GROUP,
    uncategorized_label: str = UNCATEGORIZED_GROUP,
) -> tuple[GroupBoundary, ...]:
    """Walk ``items`` once and return one boundary per contiguous group run."""
    boundaries: list[GroupBoundary] = []
    start = 0
    current: str | None = None
    amounts: list[Any] = []

    for index, item in enumerate(items):
        group = main_group_of(item, priority_label, uncategorized_label)
        if current is not None and group != current:
            boundaries.append(
                GroupBoundary(start, index - 1, current, sum_amounts(amounts))
            )
            start = index
            amounts = []
        current = group
        amounts.append(item.amount)

    if current is not None:
        boundaries.append(
            GroupBoundary(start, len(items) - 1, current, sum_amounts(amounts))
        )
    return tuple(boundaries)


def total_amount(items: Iterable[Any]) -> Decimal:
    """Sum of every line's amount, independent of grouping."""
    return sum_amounts(item.amount for item in items)
