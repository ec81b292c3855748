"""
Requisitions Module Service (``procurement_modules.requisitions.service``).

Responsibility
--------------
Drives requisitions through their approval lifecycle (save as draft,
submit, route for approval, approve, reject, reopen, load for edit, clone,
delete) and couples the draft editor with the persisted recycle queue.

Architecture position
---------------------
**Modules layer** -- thin orchestration.  ``RequisitionLifecycle`` is the
sole entry point for status changes; ``RecycleBinService`` is the sole
entry point for queue changes that must be persisted.  Both compute the
target state with pure kernel/module code, then call the injected store.

Invariants enforced
-------------------
* Every status change is looked up in ``REQUISITION_WORKFLOW``; nothing
  here hard-codes which statuses allow which actions.
* ``readable_id`` is assigned by the store on first create and carried
  unchanged through every later save, reopen and approval.
* Approved requisitions are never edited; they are cloned.
* Stores are called only after validation succeeds, and drafts/queues the
  caller holds are never mutated, so a failed call can simply be retried.

Failure modes
-------------
* ``DraftValidationError`` -- save/submit without items or title.
* ``InvalidTransitionError`` -- action not allowed from current status.
* ``RequisitionNotFoundError`` -- draft or id names no stored requisition.
* ``QueueEntryNotFoundError`` / ``ItemNotFoundError`` -- stale ids.
* ``StoreError`` -- persistence failed (SQL stores); nothing was applied.

Usage::

    lifecycle = RequisitionLifecycle(store, clock=clock, id_generator=ids)
    result = lifecycle.save_draft(draft)   # result.draft is bound to the new id
    result = lifecycle.submit(result.draft)  # result.draft is a fresh draft
"""

from __future__ import annotations

from dataclasses import replace

from procurement_kernel.domain.clock import Clock, SystemClock
from procurement_kernel.domain.identifiers import IdGenerator, UUIDIdGenerator
from procurement_kernel.exceptions import (
    InvalidTransitionError,
    RequisitionNotFoundError,
)
from procurement_kernel.logging_config import LogContext, get_logger
from procurement_modules.requisitions.config import RequisitionConfig
from procurement_modules.requisitions.editor import DraftEditor
from procurement_modules.requisitions.models import (
    NEW_DRAFT_ID,
    LifecycleResult,
    Requisition,
    RequisitionDraft,
    RequisitionStatus,
)
from procurement_modules.requisitions.recycle_queue import RecycleQueue, RestoreResult
from procurement_modules.requisitions.store import QueueStore, RequisitionStore
from procurement_modules.requisitions.workflows import (
    AWAITING_APPROVAL_STATUSES,
    EDITABLE_STATUSES,
    OPEN_STATUSES,
    REQUISITION_WORKFLOW,
)

logger = get_logger("modules.requisitions.service")


class RequisitionLifecycle:
    """
    Orchestrates requisition status changes through the workflow and store.

    Contract
    --------
    * ``save_draft``/``submit`` return a ``LifecycleResult`` whose ``draft``
      is what the editor should show next.
    * ``approve``/``reject``/``mark_pending``/``reopen`` return the stored
      requisition.
    * ``load_for_edit``/``clone`` return a new draft and persist nothing.

    Non-goals
    ---------
    * Does NOT decide approvals; the approver collaborator calls
      ``approve``/``reject`` and this class only guards the transition.
    * Does NOT own the active draft; the caller keeps it.
    """

    def __init__(
        self,
        store: RequisitionStore,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
        config: RequisitionConfig | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._ids = id_generator or UUIDIdGenerator()
        self._config = config or RequisitionConfig.with_defaults()
        self._editor = DraftEditor(self._clock, self._ids, self._config)
        self._workflow = REQUISITION_WORKFLOW

    @property
    def editor(self) -> DraftEditor:
        """Editor sharing this lifecycle's clock, ids and config."""
        return self._editor

    # =========================================================================
    # Hand-off from the editor
    # =========================================================================

    def save_draft(self, draft: RequisitionDraft) -> LifecycleResult:
        """Persist the draft with status ``draft`` (create or update)."""
        requisition = self._persist_draft(draft, "save_draft")
        saved_draft = replace(
            draft, id=requisition.id, readable_id=requisition.readable_id,
        )
        return LifecycleResult(requisition=requisition, draft=saved_draft)

    def submit(self, draft: RequisitionDraft) -> LifecycleResult:
        """Persist the draft with status ``submitted`` and clear the editor."""
        requisition = self._persist_draft(draft, "submit")
        return LifecycleResult(
            requisition=requisition, draft=self._editor.clear_draft(),
        )

    # =========================================================================
    # Approval
    # =========================================================================

    def mark_pending(self, requisition: Requisition) -> Requisition:
        """Route a submitted requisition to the approver."""
        return self._store.update_requisition(
            self._transition(requisition, "mark_pending")
        )

    def approve(
        self,
        requisition: Requisition,
        queue: RecycleQueue | None = None,
    ) -> Requisition:
        """
        Mark the requisition approved.

        The current recycle queue, when given, is frozen into the record so
        reviewers can later see what was taken out before approval.
        """
        approved = self._transition(requisition, "approve")
        approved = replace(
            approved,
            rejection_reason=None,
            queue_snapshot=tuple(queue.entries) if queue is not None else (),
        )
        stored = self._store.approve_requisition(approved)
        logger.info(
            "requisition_approved",
            extra={
                "requisition_id": stored.id,
                "readable_id": stored.readable_id,
                "total_amount": stored.total_amount,
                "queue_snapshot_size": len(stored.queue_snapshot),
            },
        )
        return stored

    def reject(self, requisition: Requisition, reason: str | None = None) -> Requisition:
        """Mark the requisition rejected, recording the approver's reason."""
        rejected = replace(
            self._transition(requisition, "reject"), rejection_reason=reason,
        )
        return self._store.update_requisition(rejected)

    def reopen(self, requisition: Requisition) -> Requisition:
        """Send a rejected requisition back to ``draft`` for rework."""
        reopened = replace(
            self._transition(requisition, "reopen"), rejection_reason=None,
        )
        return self._store.update_requisition(reopened)

    # =========================================================================
    # Editing, reuse, removal
    # =========================================================================

    def load_for_edit(self, requisition: Requisition) -> RequisitionDraft:
        """
        Copy a stored requisition into a new draft.

        Items are copied one by one so the draft shares no objects with the
        record; ids are kept so saving updates the same lines.

        Raises:
            InvalidTransitionError: for approved or pending requisitions.
        """
        status = RequisitionStatus(requisition.status)
        if status not in EDITABLE_STATUSES:
            hint = "clone it instead" if status is RequisitionStatus.APPROVED else None
            raise InvalidTransitionError(requisition.id, status.value, "edit", hint)
        logger.info(
            "requisition_loaded_for_edit",
            extra={"requisition_id": requisition.id, "status": status.value},
        )
        return RequisitionDraft(
            id=requisition.id,
            readable_id=requisition.readable_id,
            title=requisition.title,
            account=requisition.account,
            date=requisition.date,
            notes=requisition.notes,
            items=tuple(replace(item) for item in requisition.items),
        )

    def clone(self, requisition: Requisition) -> RequisitionDraft:
        """Start a new draft from any requisition; the source is untouched."""
        draft = RequisitionDraft(
            id=NEW_DRAFT_ID,
            readable_id=None,
            title=requisition.title,
            account=requisition.account,
            date=self._clock.today(),
            notes=requisition.notes,
            items=tuple(
                replace(item, id=self._ids.new_id()) for item in requisition.items
            ),
        )
        logger.info(
            "requisition_cloned",
            extra={"source_requisition_id": requisition.id, "item_count": len(draft.items)},
        )
        return draft

    def delete(self, requisition_id: str) -> None:
        """Delete an open requisition.  Approved records are kept."""
        requisition = self._load(requisition_id)
        if requisition.status not in OPEN_STATUSES:
            raise InvalidTransitionError(
                requisition_id, RequisitionStatus(requisition.status).value, "delete",
            )
        self._store.delete_requisition(requisition_id)
        logger.info("requisition_deleted", extra={"requisition_id": requisition_id})

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, requisition_id: str) -> Requisition:
        return self._load(requisition_id)

    def list_open(self) -> list[Requisition]:
        return self._store.list_requisitions(OPEN_STATUSES)

    def list_pending_approval(self) -> list[Requisition]:
        return self._store.list_requisitions(AWAITING_APPROVAL_STATUSES)

    def list_approved(self) -> list[Requisition]:
        return self._store.list_requisitions([RequisitionStatus.APPROVED])

    def allowed_actions(self, status: RequisitionStatus | str) -> tuple[str, ...]:
        return self._workflow.actions_from(RequisitionStatus(status).value)

    # =========================================================================
    # Internals
    # =========================================================================

    def _persist_draft(self, draft: RequisitionDraft, action: str) -> Requisition:
        self._editor.validate(draft)

        with LogContext.bind(requisition_id=None if draft.is_new else draft.id):
            if draft.is_new:
                target = self._target_status(RequisitionStatus.DRAFT, action, None)
                stored = self._store.create_requisition(
                    self._from_draft(draft, self._ids.new_id(), target, None)
                )
            else:
                existing = self._load(draft.id)
                target = self._target_status(existing.status, action, existing.id)
                stored = self._store.update_requisition(
                    self._from_draft(draft, existing.id, target, existing.readable_id)
                )

            logger.info(
                "requisition_saved" if action == "save_draft" else "requisition_submitted",
                extra={
                    "requisition_id": stored.id,
                    "readable_id": stored.readable_id,
                    "status": stored.status.value,
                    "item_count": len(stored.items),
                    "total_amount": stored.total_amount,
                    "is_new_requisition": draft.is_new,
                },
            )
        return stored

    @staticmethod
    def _from_draft(
        draft: RequisitionDraft,
        requisition_id: str,
        status: RequisitionStatus,
        readable_id: str | None,
    ) -> Requisition:
        return Requisition(
            id=requisition_id,
            readable_id=readable_id,
            title=draft.title,
            account=draft.account,
            date=draft.date,
            notes=draft.notes,
            items=draft.items,
            status=status,
        )

    def _transition(self, requisition: Requisition, action: str) -> Requisition:
        # Transitions start from the stored status, not the caller's copy
        stored = self._load(requisition.id)
        target = self._target_status(stored.status, action, stored.id)
        logger.info(
            "requisition_transition",
            extra={
                "requisition_id": stored.id,
                "action": action,
                "from_status": RequisitionStatus(stored.status).value,
                "to_status": target.value,
            },
        )
        return replace(stored, status=target)

    def _target_status(
        self,
        current: RequisitionStatus | str,
        action: str,
        requisition_id: str | None,
    ) -> RequisitionStatus:
        status = RequisitionStatus(current).value
        transition = self._workflow.find_transition(status, action)
        if transition is None:
            logger.warning(
                "requisition_transition_rejected",
                extra={
                    "requisition_id": requisition_id,
                    "action": action,
                    "status": status,
                },
            )
            hint = "clone it instead" if status == RequisitionStatus.APPROVED.value else None
            raise InvalidTransitionError(requisition_id, status, action, hint)
        return RequisitionStatus(transition.to_state)

    def _load(self, requisition_id: str) -> Requisition:
        requisition = self._store.get_requisition(requisition_id)
        if requisition is None:
            raise RequisitionNotFoundError(requisition_id)
        return requisition


class RecycleBinService:
    """
    Persists recycle queue changes made while editing.

    Each method computes the new queue (and draft) purely, saves the queue,
    and only then returns.  If ``save_queue`` raises, the caller still holds
    its previous draft and queue unchanged.
    """

    def __init__(
        self,
        queue_store: QueueStore,
        editor: DraftEditor,
        id_generator: IdGenerator | None = None,
    ):
        self._queue_store = queue_store
        self._editor = editor
        self._ids = id_generator or UUIDIdGenerator()

    def load(self) -> RecycleQueue:
        return self._queue_store.load_queue()

    def remove_item(
        self,
        queue: RecycleQueue,
        draft: RequisitionDraft,
        item_id: str,
    ) -> tuple[RequisitionDraft, RecycleQueue]:
        """Move one item from the draft into the queue."""
        new_draft, entry = self._editor.remove_item(draft, item_id)
        new_queue = queue.enqueue(entry)
        self._queue_store.save_queue(new_queue)
        return new_draft, new_queue

    def restore(
        self,
        queue: RecycleQueue,
        entry_id: str,
        draft: RequisitionDraft,
    ) -> RestoreResult:
        """Move one queued item back into the draft under a new id."""
        result = queue.restore(entry_id, draft, self._ids)
        self._queue_store.save_queue(result.queue)
        return result

    def purge(self, queue: RecycleQueue, entry_id: str) -> RecycleQueue:
        new_queue = queue.purge(entry_id)
        self._queue_store.save_queue(new_queue)
        return new_queue

    def purge_all(self, queue: RecycleQueue) -> RecycleQueue:
        new_queue = queue.purge_all()
        self._queue_store.save_queue(new_queue)
        return new_queue
