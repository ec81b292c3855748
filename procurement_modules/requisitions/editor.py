"""
Draft Editor (``procurement_modules.requisitions.editor``).

Responsibility
--------------
Own the editing rules for one working draft: add, edit, and remove line
items, edit header fields, clear, and validate before hand-off to the
lifecycle.

Architecture position
---------------------
**Modules layer** -- pure transformations.  Every method takes a
``RequisitionDraft`` and returns a new one; the hosting application keeps
the current draft and dispatches edits (reducer pattern).

Invariants enforced
-------------------
* Ordering: after any edit touching ``category`` or ``is_priority`` the
  items are re-sorted synchronously, so the next read already reflects
  the new position.  Other edits keep the existing order.
* Amounts: line amounts follow ``procurement_kernel.domain.money``.

Failure modes
-------------
* ``ItemNotFoundError`` -- item id is not in the draft (stale UI).
* ``UnknownItemFieldError`` / ``UnknownHeaderFieldError`` -- bad field name.
* ``DraftValidationError`` -- ``validate`` found no items or a blank title,
  or ``update_header`` got a date that is not ISO formatted.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any

from procurement_kernel.domain.clock import Clock
from procurement_kernel.domain.identifiers import IdGenerator
from procurement_kernel.domain.money import apply_field_edit
from procurement_kernel.domain.ordering import (
    GroupBoundary,
    compute_group_boundaries,
    sort_items,
    total_amount,
)
from procurement_kernel.exceptions import (
    DraftValidationError,
    ItemNotFoundError,
    UnknownHeaderFieldError,
)
from procurement_kernel.logging_config import get_logger
from procurement_modules.requisitions.config import RequisitionConfig
from procurement_modules.requisitions.helpers import suggest_item_names
from procurement_modules.requisitions.models import (
    NEW_DRAFT_ID,
    QueueEntry,
    RequisitionDraft,
    RequisitionItem,
)

logger = get_logger("modules.requisitions.editor")

HEADER_FIELDS: frozenset[str] = frozenset({"title", "account", "date", "notes"})

# Edits to these fields can move an item
_ORDERING_FIELDS: frozenset[str] = frozenset({"category", "is_priority"})


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise DraftValidationError("date", f"not an ISO date: {value!r}") from None


class DraftEditor:
    """
    Applies user edits to a draft.

    Contract
    --------
    * Never mutates its arguments.
    * Clock and id generator are injected so results are deterministic
      under test.
    """

    def __init__(
        self,
        clock: Clock,
        id_generator: IdGenerator,
        config: RequisitionConfig | None = None,
    ):
        self._clock = clock
        self._ids = id_generator
        self._config = config or RequisitionConfig.with_defaults()

    # =========================================================================
    # Draft lifecycle
    # =========================================================================

    def new_draft(self) -> RequisitionDraft:
        """An empty draft with default header fields."""
        return RequisitionDraft(
            id=NEW_DRAFT_ID,
            title=self._config.default_title,
            account=self._config.default_account,
            date=self._clock.today(),
            notes="",
            items=(),
        )

    def clear_draft(self) -> RequisitionDraft:
        """Reset header fields and drop all items.  The recycle queue is untouched."""
        logger.info("draft_cleared")
        return self.new_draft()

    def update_header(self, draft: RequisitionDraft, **changes: Any) -> RequisitionDraft:
        """Replace header fields (``title``, ``account``, ``date``, ``notes``)."""
        cleaned: dict[str, Any] = {}
        for name, value in changes.items():
            if name not in HEADER_FIELDS:
                raise UnknownHeaderFieldError(name)
            if name == "date":
                cleaned[name] = _parse_date(value)
            else:
                cleaned[name] = "" if value is None else str(value)
        return replace(draft, **cleaned)

    # =========================================================================
    # Line items
    # =========================================================================

    def add_item(self, draft: RequisitionDraft) -> RequisitionDraft:
        """Append a blank line.

        A blank line has no category and no priority, so it already belongs
        at the end and no re-sort is needed.
        """
        item = RequisitionItem(
            id=self._ids.new_id(),
            category="",
            name="",
            quantity=Decimal("1"),
            unit_price=Decimal("0"),
            amount=Decimal("0"),
            is_manual=False,
            is_priority=False,
        )
        logger.debug("draft_item_added", extra={"item_id": item.id})
        return replace(draft, items=draft.items + (item,))

    def edit_field(
        self,
        draft: RequisitionDraft,
        item_id: str,
        field_name: str,
        value: Any,
    ) -> RequisitionDraft:
        """Set one field on one item, re-sorting when the edit can move it."""
        index = self._index_of(draft, item_id)
        edited = apply_field_edit(draft.items[index], field_name, value)
        items = draft.items[:index] + (edited,) + draft.items[index + 1:]
        if field_name in _ORDERING_FIELDS:
            items = sort_items(items)
        return replace(draft, items=items)

    def toggle_priority(self, draft: RequisitionDraft, item_id: str) -> RequisitionDraft:
        """Flip an item's priority flag."""
        index = self._index_of(draft, item_id)
        current = draft.items[index].is_priority
        return self.edit_field(draft, item_id, "is_priority", not current)

    def remove_item(
        self,
        draft: RequisitionDraft,
        item_id: str,
    ) -> tuple[RequisitionDraft, QueueEntry]:
        """
        Take an item out of the draft.

        Returns the new draft and a ``QueueEntry`` wrapping the removed item.
        Inserting the entry into the recycle queue is the caller's job.
        """
        index = self._index_of(draft, item_id)
        item = draft.items[index]
        entry = QueueEntry(
            id=self._ids.new_id(),
            item_data=item,
            date_removed=self._clock.now(),
            original_requisition_id=None if draft.is_new else draft.id,
        )
        logger.info(
            "draft_item_removed",
            extra={
                "item_id": item.id,
                "queue_entry_id": entry.id,
                "amount": item.amount,
            },
        )
        return replace(draft, items=draft.items[:index] + draft.items[index + 1:]), entry

    # =========================================================================
    # Validation and presentation helpers
    # =========================================================================

    def validate(self, draft: RequisitionDraft) -> None:
        """
        Check the draft can be saved or submitted.

        Raises:
            DraftValidationError: naming ``items`` or ``title``.
        """
        if not draft.items:
            raise DraftValidationError("items", "at least one line item is required")
        if not (draft.title or "").strip():
            raise DraftValidationError("title", "a title is required")

    def group_boundaries(self, draft: RequisitionDraft) -> tuple[GroupBoundary, ...]:
        """Subtotal bands for rendering, using the configured labels."""
        return compute_group_boundaries(
            draft.items,
            priority_label=self._config.priority_group_label,
            uncategorized_label=self._config.uncategorized_label,
        )

    def total(self, draft: RequisitionDraft) -> Decimal:
        return total_amount(draft.items)

    def suggest_names(self, history: Iterable[str], query: str) -> list[str]:
        """Name suggestions for a line being typed, capped by config."""
        return suggest_item_names(history, query, self._config.suggestion_limit)

    @staticmethod
    def _index_of(draft: RequisitionDraft, item_id: str) -> int:
        for index, item in enumerate(draft.items):
            if item.id == item_id:
                return index
        raise ItemNotFoundError(item_id)
