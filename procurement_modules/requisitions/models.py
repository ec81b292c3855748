"""
Requisition Domain Models.

The nouns of requisition editing: line items, drafts, persisted
requisitions, and recycle queue entries.  All are frozen; every editor,
queue, and lifecycle operation returns new instances.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from procurement_kernel.domain.money import sum_amounts

# Id carried by a draft that has never been saved
NEW_DRAFT_ID = "draft"


class RequisitionStatus(str, Enum):
    """Requisition lifecycle states."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def label(self) -> str:
        """Human-facing name, e.g. ``Pending Approval``."""
        return self.value.replace("_", " ").title()


@dataclass(frozen=True)
class RequisitionItem:
    """A line item on a requisition."""
    id: str
    category: str = ""  # may be "Main/Sub"; "" means uncategorized
    name: str = ""
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    is_manual: bool = False
    is_priority: bool = False


@dataclass(frozen=True)
class QueueEntry:
    """A removed line item waiting in the recycle queue."""
    id: str
    item_data: RequisitionItem
    date_removed: datetime
    original_requisition_id: str | None = None


@dataclass(frozen=True)
class Requisition:
    """A persisted requisition."""
    id: str
    title: str
    account: str
    date: date
    notes: str = ""
    items: tuple[RequisitionItem, ...] = field(default_factory=tuple)
    status: RequisitionStatus = RequisitionStatus.DRAFT
    readable_id: str | None = None  # assigned once by the store
    rejection_reason: str | None = None
    queue_snapshot: tuple[QueueEntry, ...] = field(default_factory=tuple)

    @property
    def total_amount(self) -> Decimal:
        return sum_amounts(item.amount for item in self.items)


@dataclass(frozen=True)
class RequisitionDraft:
    """The working copy being edited.

    ``id`` stays ``NEW_DRAFT_ID`` until the first save; afterwards it names
    the stored requisition the next save will update.
    """
    id: str
    title: str
    account: str
    date: date
    notes: str = ""
    items: tuple[RequisitionItem, ...] = field(default_factory=tuple)
    readable_id: str | None = None

    @property
    def is_new(self) -> bool:
        return self.id == NEW_DRAFT_ID

    def find_item(self, item_id: str) -> RequisitionItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


@dataclass(frozen=True)
class QueueSummary:
    """Totals of queued amounts split by the priority flag."""
    priority_total: Decimal
    standard_total: Decimal

    @property
    def total(self) -> Decimal:
        return sum_amounts((self.priority_total, self.standard_total))


@dataclass(frozen=True)
class LifecycleResult:
    """Outcome of a save or submit.

    ``draft`` is what the editor should show next: the saved draft
    (now bound to the stored id) after a save, a cleared draft after a
    submit.
    """
    requisition: Requisition
    draft: RequisitionDraft
