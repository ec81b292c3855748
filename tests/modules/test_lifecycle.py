"""Tests for RequisitionLifecycle (procurement_modules/requisitions/service.py)."""

from dataclasses import replace

import pytest

from procurement_kernel.exceptions import (
    DraftValidationError,
    InvalidTransitionError,
    LifecycleError,
    RequisitionNotFoundError,
    StoreError,
    ValidationError,
)
from procurement_modules.requisitions.models import NEW_DRAFT_ID, RequisitionStatus
from procurement_modules.requisitions.recycle_queue import RecycleQueue

from conftest import FIXED_TODAY


class TestSaveDraft:

    def test_new_draft_created_with_readable_id(self, lifecycle, filled_draft):
        result = lifecycle.save_draft(filled_draft)
        assert result.requisition.status == RequisitionStatus.DRAFT
        assert result.requisition.readable_id == "REQ-001"
        assert result.requisition.id != NEW_DRAFT_ID
        assert result.draft.id == result.requisition.id
        assert result.draft.readable_id == "REQ-001"
        assert result.draft.items == filled_draft.items

    def test_second_save_updates_in_place(self, lifecycle, requisition_store, filled_draft):
        first = lifecycle.save_draft(filled_draft)
        edited = replace(first.draft, title="Office restock v2")
        second = lifecycle.save_draft(edited)

        assert second.requisition.id == first.requisition.id
        assert second.requisition.readable_id == "REQ-001"
        assert second.requisition.title == "Office restock v2"
        assert len(requisition_store.list_requisitions()) == 1

    def test_readable_ids_are_sequential(self, lifecycle, editor, filled_draft):
        assert lifecycle.save_draft(filled_draft).requisition.readable_id == "REQ-001"
        assert lifecycle.save_draft(filled_draft).requisition.readable_id == "REQ-002"

    def test_empty_draft_rejected(self, lifecycle, editor, requisition_store):
        with pytest.raises(DraftValidationError):
            lifecycle.save_draft(editor.new_draft())
        assert requisition_store.list_requisitions() == []

    def test_stale_draft_id(self, lifecycle, filled_draft):
        with pytest.raises(RequisitionNotFoundError):
            lifecycle.save_draft(replace(filled_draft, id="gone"))

    def test_store_refuses_duplicate_id(self, lifecycle, requisition_store, filled_draft):
        saved = lifecycle.save_draft(filled_draft).requisition
        with pytest.raises(StoreError) as exc_info:
            requisition_store.create_requisition(saved)
        assert exc_info.value.operation == "create_requisition"
        assert len(requisition_store.list_requisitions()) == 1

    def test_logs_save(self, lifecycle, filled_draft, captured_logs):
        lifecycle.save_draft(filled_draft)
        saved = [r for r in captured_logs() if r["message"] == "requisition_saved"]
        assert len(saved) == 1
        assert saved[0]["readable_id"] == "REQ-001"
        assert saved[0]["total_amount"] == "57.50"


class TestSubmit:

    def test_submit_new_draft(self, lifecycle, filled_draft):
        result = lifecycle.submit(filled_draft)
        assert result.requisition.status == RequisitionStatus.SUBMITTED
        assert result.requisition.readable_id == "REQ-001"
        assert result.draft.is_new
        assert result.draft.items == ()
        assert result.draft.date == FIXED_TODAY

    def test_submit_saved_draft_keeps_readable_id(self, lifecycle, filled_draft):
        saved = lifecycle.save_draft(filled_draft)
        submitted = lifecycle.submit(saved.draft).requisition
        assert submitted.id == saved.requisition.id
        assert submitted.readable_id == "REQ-001"

    def test_zero_items_is_validation_error(self, lifecycle, editor):
        draft = editor.update_header(editor.new_draft(), title="Nothing")
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.submit(draft)
        assert exc_info.value.field == "items"

    def test_blank_title(self, lifecycle, filled_draft):
        with pytest.raises(DraftValidationError) as exc_info:
            lifecycle.submit(replace(filled_draft, title=" "))
        assert exc_info.value.field == "title"

    def test_cannot_resubmit_approved(self, lifecycle, filled_draft):
        saved = lifecycle.save_draft(filled_draft)
        requisition = lifecycle.submit(saved.draft).requisition
        lifecycle.approve(requisition)
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.submit(saved.draft)
        assert exc_info.value.status == "approved"


class TestApproval:

    @pytest.fixture
    def submitted(self, lifecycle, filled_draft):
        return lifecycle.submit(filled_draft).requisition

    def test_mark_pending(self, lifecycle, submitted):
        pending = lifecycle.mark_pending(submitted)
        assert pending.status == RequisitionStatus.PENDING_APPROVAL
        assert lifecycle.list_pending_approval() == [pending]

    def test_approve_pending(self, lifecycle, submitted):
        approved = lifecycle.approve(lifecycle.mark_pending(submitted))
        assert approved.status == RequisitionStatus.APPROVED
        assert approved.readable_id == submitted.readable_id
        assert lifecycle.list_approved() == [approved]

    def test_approve_snapshots_queue(self, lifecycle, editor, submitted, filled_draft):
        _, entry = editor.remove_item(filled_draft, "soap")
        queue = RecycleQueue().enqueue(entry)
        approved = lifecycle.approve(submitted, queue)
        assert approved.queue_snapshot == (entry,)

    def test_approve_draft_is_invalid(self, lifecycle, filled_draft):
        draft_record = lifecycle.save_draft(filled_draft).requisition
        with pytest.raises(LifecycleError):
            lifecycle.approve(draft_record)

    def test_reject_records_reason(self, lifecycle, submitted):
        rejected = lifecycle.reject(submitted, "over budget")
        assert rejected.status == RequisitionStatus.REJECTED
        assert rejected.rejection_reason == "over budget"

    def test_reopen_clears_reason(self, lifecycle, submitted):
        reopened = lifecycle.reopen(lifecycle.reject(submitted, "over budget"))
        assert reopened.status == RequisitionStatus.DRAFT
        assert reopened.rejection_reason is None
        assert reopened.readable_id == submitted.readable_id

    def test_reopen_requires_rejection(self, lifecycle, submitted):
        with pytest.raises(InvalidTransitionError):
            lifecycle.reopen(submitted)

    def test_stale_copy_cannot_skip_workflow(self, lifecycle, submitted):
        lifecycle.reject(submitted, "over budget")
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.approve(submitted)
        assert exc_info.value.status == "rejected"
        assert lifecycle.get(submitted.id).status == RequisitionStatus.REJECTED

    def test_transition_uses_stored_items(self, lifecycle, submitted):
        stale = replace(submitted, items=submitted.items[:1], title="edited elsewhere")
        approved = lifecycle.approve(stale)
        assert approved.items == submitted.items
        assert approved.title == submitted.title

    def test_unknown_requisition(self, lifecycle, submitted):
        with pytest.raises(RequisitionNotFoundError):
            lifecycle.mark_pending(replace(submitted, id="ghost"))

    def test_transition_logged(self, lifecycle, submitted, captured_logs):
        lifecycle.approve(submitted)
        records = captured_logs()
        transition = next(r for r in records if r["message"] == "requisition_transition")
        assert transition["from_status"] == "submitted"
        assert transition["to_status"] == "approved"
        assert any(r["message"] == "requisition_approved" for r in records)

    def test_rejected_transition_logged(self, lifecycle, submitted, captured_logs):
        approved = lifecycle.approve(submitted)
        with pytest.raises(InvalidTransitionError):
            lifecycle.reject(approved)
        warning = next(
            r for r in captured_logs() if r["message"] == "requisition_transition_rejected"
        )
        assert warning["level"] == "WARNING"
        assert warning["action"] == "reject"


class TestLoadForEdit:

    def test_round_trip_keeps_ids(self, lifecycle, filled_draft):
        saved = lifecycle.save_draft(filled_draft).requisition
        draft = lifecycle.load_for_edit(saved)
        assert draft.id == saved.id
        assert draft.readable_id == "REQ-001"
        assert draft.items == saved.items

    def test_rejected_is_editable(self, lifecycle, filled_draft):
        submitted = lifecycle.submit(filled_draft).requisition
        rejected = lifecycle.reject(submitted)
        draft = lifecycle.load_for_edit(rejected)
        resubmitted = lifecycle.submit(draft).requisition
        assert resubmitted.status == RequisitionStatus.SUBMITTED
        assert resubmitted.readable_id == submitted.readable_id

    def test_approved_raises_lifecycle_error(self, lifecycle, filled_draft):
        approved = lifecycle.approve(lifecycle.submit(filled_draft).requisition)
        with pytest.raises(LifecycleError) as exc_info:
            lifecycle.load_for_edit(approved)
        assert exc_info.value.code == "INVALID_TRANSITION"
        assert exc_info.value.hint == "clone it instead"

    def test_pending_not_editable(self, lifecycle, filled_draft):
        pending = lifecycle.mark_pending(lifecycle.submit(filled_draft).requisition)
        with pytest.raises(InvalidTransitionError):
            lifecycle.load_for_edit(pending)


class TestClone:

    def test_clone_approved(self, lifecycle, filled_draft, deterministic_clock):
        approved = lifecycle.approve(lifecycle.submit(filled_draft).requisition)
        clone = lifecycle.clone(approved)

        assert clone.is_new
        assert clone.readable_id is None
        assert clone.title == approved.title
        assert [i.name for i in clone.items] == [i.name for i in approved.items]
        assert not {i.id for i in clone.items} & {i.id for i in approved.items}
        assert clone.date == deterministic_clock.today()

    def test_clone_saves_as_new_requisition(self, lifecycle, filled_draft):
        approved = lifecycle.approve(lifecycle.submit(filled_draft).requisition)
        copy = lifecycle.save_draft(lifecycle.clone(approved)).requisition
        assert copy.id != approved.id
        assert copy.readable_id == "REQ-002"
        assert lifecycle.get(approved.id).status == RequisitionStatus.APPROVED


class TestDeleteAndLists:

    def test_delete_open(self, lifecycle, filled_draft):
        saved = lifecycle.save_draft(filled_draft).requisition
        lifecycle.delete(saved.id)
        assert lifecycle.list_open() == []
        with pytest.raises(RequisitionNotFoundError):
            lifecycle.get(saved.id)

    def test_delete_does_not_free_readable_id(self, lifecycle, filled_draft):
        first = lifecycle.save_draft(filled_draft).requisition
        lifecycle.delete(first.id)
        assert lifecycle.save_draft(filled_draft).requisition.readable_id == "REQ-002"

    def test_delete_approved_refused(self, lifecycle, filled_draft):
        approved = lifecycle.approve(lifecycle.submit(filled_draft).requisition)
        with pytest.raises(InvalidTransitionError):
            lifecycle.delete(approved.id)

    def test_delete_unknown(self, lifecycle):
        with pytest.raises(RequisitionNotFoundError):
            lifecycle.delete("nope")

    def test_lists_newest_first(self, lifecycle, filled_draft):
        first = lifecycle.save_draft(filled_draft).requisition
        second = lifecycle.submit(filled_draft).requisition
        third = lifecycle.approve(lifecycle.submit(filled_draft).requisition)

        assert lifecycle.list_open() == [second, first]
        assert lifecycle.list_pending_approval() == [second]
        assert lifecycle.list_approved() == [third]

    def test_allowed_actions(self, lifecycle):
        assert lifecycle.allowed_actions("approved") == ()
        assert set(lifecycle.allowed_actions(RequisitionStatus.REJECTED)) == {
            "save_draft", "submit", "reopen",
        }
