"""
Requisition Workflows.

State machine for requisition approval.  The lifecycle service consults it
before every status change; it never hard-codes allowed states itself.
"""

from procurement_kernel.domain.workflow import Guard, Transition, Workflow
from procurement_kernel.logging_config import get_logger
from procurement_modules.requisitions.models import RequisitionStatus

logger = get_logger("modules.requisitions.workflows")

_DRAFT = RequisitionStatus.DRAFT.value
_SUBMITTED = RequisitionStatus.SUBMITTED.value
_PENDING = RequisitionStatus.PENDING_APPROVAL.value
_APPROVED = RequisitionStatus.APPROVED.value
_REJECTED = RequisitionStatus.REJECTED.value


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

DRAFT_COMPLETE = Guard(
    name="draft_complete",
    description="Draft has a title and at least one line item",
)

APPROVER_DECISION = Guard(
    name="approver_decision",
    description="Decision recorded by the approver role",
)


# -----------------------------------------------------------------------------
# Requisition Workflow
# -----------------------------------------------------------------------------

REQUISITION_WORKFLOW = Workflow(
    name="requisition",
    description="Requisition drafting and approval lifecycle",
    initial_state=_DRAFT,
    states=(_DRAFT, _SUBMITTED, _PENDING, _APPROVED, _REJECTED),
    transitions=(
        Transition(_DRAFT, _DRAFT, action="save_draft", guard=DRAFT_COMPLETE),
        Transition(_SUBMITTED, _DRAFT, action="save_draft", guard=DRAFT_COMPLETE),
        Transition(_REJECTED, _DRAFT, action="save_draft", guard=DRAFT_COMPLETE),
        Transition(_DRAFT, _SUBMITTED, action="submit", guard=DRAFT_COMPLETE),
        Transition(_SUBMITTED, _SUBMITTED, action="submit", guard=DRAFT_COMPLETE),
        Transition(_REJECTED, _SUBMITTED, action="submit", guard=DRAFT_COMPLETE),
        Transition(_SUBMITTED, _PENDING, action="mark_pending"),
        Transition(_SUBMITTED, _APPROVED, action="approve", guard=APPROVER_DECISION),
        Transition(_PENDING, _APPROVED, action="approve", guard=APPROVER_DECISION),
        Transition(_SUBMITTED, _REJECTED, action="reject", guard=APPROVER_DECISION),
        Transition(_PENDING, _REJECTED, action="reject", guard=APPROVER_DECISION),
        Transition(_REJECTED, _DRAFT, action="reopen"),
    ),
    terminal_states=(_APPROVED,),
)

# Statuses whose requisitions may be loaded back into the editor
EDITABLE_STATUSES: frozenset[RequisitionStatus] = frozenset({
    RequisitionStatus.DRAFT,
    RequisitionStatus.SUBMITTED,
    RequisitionStatus.REJECTED,
})

# Statuses shown in the drafts list and deletable by the requester
OPEN_STATUSES: frozenset[RequisitionStatus] = frozenset({
    RequisitionStatus.DRAFT,
    RequisitionStatus.SUBMITTED,
    RequisitionStatus.PENDING_APPROVAL,
    RequisitionStatus.REJECTED,
})

# Statuses awaiting the approver
AWAITING_APPROVAL_STATUSES: frozenset[RequisitionStatus] = frozenset({
    RequisitionStatus.SUBMITTED,
    RequisitionStatus.PENDING_APPROVAL,
})

logger.debug(
    "requisition_workflow_registered",
    extra={
        "workflow_name": REQUISITION_WORKFLOW.name,
        "state_count": len(REQUISITION_WORKFLOW.states),
        "transition_count": len(REQUISITION_WORKFLOW.transitions),
        "initial_state": REQUISITION_WORKFLOW.initial_state,
    },
)
