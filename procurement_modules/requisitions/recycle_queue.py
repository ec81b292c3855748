"""
Recycle Queue (``procurement_modules.requisitions.recycle_queue``).

Responsibility
--------------
Hold line items removed from any draft so they can be restored instead of
lost.  The queue is independent of any single draft and is persisted on
its own (see ``QueueStore``).

Invariants enforced
-------------------
* Append-only on removal: each removal adds exactly one entry, with no
  deduplication.  An item removed, restored and removed again yields two
  independent entries over time.
* Entries leave only through ``restore``, ``purge`` or ``purge_all``; they
  never expire.
* A restored item gets a fresh id and is placed by the ordering rules,
  never blindly appended.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace

from procurement_kernel.domain.identifiers import IdGenerator
from procurement_kernel.domain.money import sum_amounts
from procurement_kernel.domain.ordering import sort_items
from procurement_kernel.exceptions import QueueEntryNotFoundError
from procurement_kernel.logging_config import get_logger
from procurement_modules.requisitions.models import (
    QueueEntry,
    QueueSummary,
    RequisitionDraft,
)

logger = get_logger("modules.requisitions.recycle_queue")


@dataclass(frozen=True)
class RestoreResult:
    """Outcome of restoring one entry into a draft."""
    draft: RequisitionDraft
    queue: RecycleQueue
    entry: QueueEntry


@dataclass(frozen=True)
class RecycleQueue:
    """Immutable recycle queue; entries are kept in removal order."""
    entries: tuple[QueueEntry, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[QueueEntry]:
        return iter(self.entries)

    def get(self, entry_id: str) -> QueueEntry:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise QueueEntryNotFoundError(entry_id)

    def newest_first(self) -> tuple[QueueEntry, ...]:
        """Display order: most recent removal first."""
        return tuple(reversed(self.entries))

    def enqueue(self, entry: QueueEntry) -> RecycleQueue:
        logger.info(
            "queue_entry_added",
            extra={
                "queue_entry_id": entry.id,
                "item_id": entry.item_data.id,
                "queue_length": len(self.entries) + 1,
            },
        )
        return replace(self, entries=self.entries + (entry,))

    def restore(
        self,
        entry_id: str,
        draft: RequisitionDraft,
        id_generator: IdGenerator,
    ) -> RestoreResult:
        """
        Move an entry's item back into ``draft``.

        The item gets a new id so it cannot collide with anything already in
        the draft or still in the queue, then the draft is re-sorted so the
        item lands where its priority and category put it.

        Raises:
            QueueEntryNotFoundError: if the entry was already consumed.
        """
        entry = self.get(entry_id)
        item = replace(entry.item_data, id=id_generator.new_id())
        restored_draft = replace(draft, items=sort_items(draft.items + (item,)))
        queue = self._without(entry_id)
        logger.info(
            "queue_entry_restored",
            extra={
                "queue_entry_id": entry.id,
                "previous_item_id": entry.item_data.id,
                "item_id": item.id,
                "queue_length": len(queue),
            },
        )
        return RestoreResult(draft=restored_draft, queue=queue, entry=entry)

    def purge(self, entry_id: str) -> RecycleQueue:
        """Permanently delete one entry."""
        self.get(entry_id)
        queue = self._without(entry_id)
        logger.info(
            "queue_entry_purged",
            extra={"queue_entry_id": entry_id, "queue_length": len(queue)},
        )
        return queue

    def purge_all(self) -> RecycleQueue:
        """Permanently delete every entry."""
        logger.info("queue_purged", extra={"purged_count": len(self.entries)})
        return replace(self, entries=())

    def summaries(self) -> QueueSummary:
        items = [entry.item_data for entry in self.entries]
        return QueueSummary(
            priority_total=sum_amounts(i.amount for i in items if i.is_priority),
            standard_total=sum_amounts(i.amount for i in items if not i.is_priority),
        )

    def _without(self, entry_id: str) -> RecycleQueue:
        return replace(
            self,
            entries=tuple(e for e in self.entries if e.id != entry_id),
        )
