"""
Typed Exception Hierarchy for the Procurement Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The hosting application decides how to word each failure for the user.  It
can only do that reliably if errors are caught by TYPE and carry structured
DATA, not if it has to parse message strings:

  1. Every error has a typed exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured attributes (field, item_id, status, ...)

Example - WRONG way to handle errors:
    try:
        lifecycle.submit(draft)
    except Exception as e:
        if "title" in str(e):  # FRAGILE - message might change
            focus_title_input()

Example - RIGHT way (what this module enables):
    try:
        lifecycle.submit(draft)
    except DraftValidationError as e:
        focus_input(e.field)                   # Structured data
        api_response(code=e.code, field=e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ProcurementKernelError:

    ProcurementKernelError (base)
    |
    +-- ValidationError
    |   +-- DraftValidationError
    |   +-- UnknownItemFieldError
    |   +-- UnknownHeaderFieldError
    |
    +-- LifecycleError
    |   +-- InvalidTransitionError
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- QueueEntryNotFoundError
    |   +-- RequisitionNotFoundError
    |
    +-- StoreError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                   | When Raised
-------------|------------------------|--------------------------------------------
Validation   | DRAFT_INVALID          | Save/submit with no items or blank title
             | UNKNOWN_ITEM_FIELD     | Editing a field a line item does not have
             | UNKNOWN_HEADER_FIELD   | Editing a header field that does not exist
-------------|------------------------|--------------------------------------------
Lifecycle    | INVALID_TRANSITION     | Action not permitted from current status
-------------|------------------------|--------------------------------------------
Not found    | ITEM_NOT_FOUND         | Item id no longer in the draft (stale UI)
             | QUEUE_ENTRY_NOT_FOUND  | Queue entry already restored or purged
             | REQUISITION_NOT_FOUND  | Requisition id unknown to the store
-------------|------------------------|--------------------------------------------
Store        | STORE_ERROR            | Persistence call failed (retry is safe)

===============================================================================
HANDLING PATTERNS
===============================================================================

1. VALIDATION -> user corrects input and retries:

    except DraftValidationError as e:
        show_message(f"{e.field} is required")

2. LIFECYCLE -> caller picks another path (clone instead of edit):

    except InvalidTransitionError as e:
        if e.status == "approved":
            draft = lifecycle.clone(requisition)

3. NOT FOUND -> UI state is stale; refresh and retry:

    except NotFoundError:
        refresh_view()

None of these errors is fatal.  Every operation either fully applies its
transformation or raises without changing anything the caller holds.
===============================================================================
"""


class ProcurementKernelError(Exception):
    """
    Base exception for all procurement kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "PROCUREMENT_KERNEL_ERROR"


# Validation exceptions


class ValidationError(ProcurementKernelError):
    """Base exception for input the user can correct and resubmit."""

    code: str = "VALIDATION_ERROR"


class DraftValidationError(ValidationError):
    """Draft is missing a field required to save or submit."""

    code: str = "DRAFT_INVALID"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Draft field '{field}' is invalid: {reason}")


class UnknownItemFieldError(ValidationError):
    """Attempted to edit a field that line items do not expose."""

    code: str = "UNKNOWN_ITEM_FIELD"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Line items have no editable field '{field}'")


class UnknownHeaderFieldError(ValidationError):
    """Attempted to edit a header field that drafts do not expose."""

    code: str = "UNKNOWN_HEADER_FIELD"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Drafts have no editable header field '{field}'")


# Lifecycle exceptions


class LifecycleError(ProcurementKernelError):
    """Base exception for status transitions that are not allowed."""

    code: str = "LIFECYCLE_ERROR"


class InvalidTransitionError(LifecycleError):
    """Action is not permitted from the requisition's current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        requisition_id: str | None,
        status: str,
        action: str,
        hint: str | None = None,
    ):
        self.requisition_id = requisition_id
        self.status = status
        self.action = action
        self.hint = hint
        message = (
            f"Cannot {action} requisition {requisition_id} "
            f"from status '{status}'"
        )
        if hint:
            message = f"{message}; {hint}"
        super().__init__(message)


# Not-found exceptions


class NotFoundError(ProcurementKernelError):
    """Base exception for ids that no longer exist (stale caller state)."""

    code: str = "NOT_FOUND"


class ItemNotFoundError(NotFoundError):
    """Line item with given ID is not in the draft."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Line item not found: {item_id}")


class QueueEntryNotFoundError(NotFoundError):
    """Recycle queue entry with given ID does not exist."""

    code: str = "QUEUE_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Recycle queue entry not found: {entry_id}")


class RequisitionNotFoundError(NotFoundError):
    """Requisition with given ID is unknown to the store."""

    code: str = "REQUISITION_NOT_FOUND"

    def __init__(self, requisition_id: str):
        self.requisition_id = requisition_id
        super().__init__(f"Requisition not found: {requisition_id}")


# Store exceptions


class StoreError(ProcurementKernelError):
    """
    A persistence call failed.

    The in-memory draft and queue are untouched, so the caller may retry.
    """

    code: str = "STORE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Store operation '{operation}' failed: {detail}")
