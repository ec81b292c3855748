"""
Requisitions Module (``procurement_modules.requisitions``).

Responsibility
--------------
Requisition drafting and approval: the draft editor, the recycle queue
that keeps removed line items recoverable, and the lifecycle that moves a
requisition from draft through submission to approval or rejection.

Architecture position
---------------------
**Modules layer** -- value objects, a declarative workflow, a config
schema, pure editing/queue transformations, and two service facades
(``RequisitionLifecycle``, ``RecycleBinService``) that call the injected
stores.  SQL-backed stores live in ``orm.py`` and are imported on demand.

Invariants enforced
-------------------
* Every line item is either in exactly one draft or in the recycle queue.
* Items sort priority first, then categorized before uncategorized, then
  by category name.
* A requisition's ``readable_id`` is assigned once and never changes.
* Approved requisitions are immutable; reuse them through ``clone``.

Failure modes
-------------
* ``DraftValidationError`` -- save/submit of an incomplete draft.
* ``InvalidTransitionError`` -- action not allowed from current status.
* ``NotFoundError`` subclasses -- stale item, entry or requisition ids.
* ``StoreError`` -- persistence failed; caller state is untouched.
"""

from procurement_modules.requisitions.config import RequisitionConfig, load_config
from procurement_modules.requisitions.editor import DraftEditor
from procurement_modules.requisitions.helpers import suggest_item_names
from procurement_modules.requisitions.models import (
    NEW_DRAFT_ID,
    LifecycleResult,
    QueueEntry,
    QueueSummary,
    Requisition,
    RequisitionDraft,
    RequisitionItem,
    RequisitionStatus,
)
from procurement_modules.requisitions.recycle_queue import RecycleQueue, RestoreResult
from procurement_modules.requisitions.service import (
    RecycleBinService,
    RequisitionLifecycle,
)
from procurement_modules.requisitions.store import (
    InMemoryQueueStore,
    InMemoryRequisitionStore,
    QueueStore,
    RequisitionStore,
)
from procurement_modules.requisitions.workflows import REQUISITION_WORKFLOW

__all__ = [
    "NEW_DRAFT_ID",
    "RequisitionStatus",
    "RequisitionItem",
    "RequisitionDraft",
    "Requisition",
    "QueueEntry",
    "QueueSummary",
    "LifecycleResult",
    "RequisitionConfig",
    "load_config",
    "DraftEditor",
    "RecycleQueue",
    "RestoreResult",
    "RequisitionLifecycle",
    "RecycleBinService",
    "RequisitionStore",
    "QueueStore",
    "InMemoryRequisitionStore",
    "InMemoryQueueStore",
    "REQUISITION_WORKFLOW",
    "suggest_item_names",
]
