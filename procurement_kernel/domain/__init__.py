"""
Pure domain layer.

Value objects and functions with NO dependencies on the ORM, the database,
or I/O.  Time and ids arrive through the injected Clock and IdGenerator.
"""

from procurement_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
)
from procurement_kernel.domain.identifiers import (
    IdGenerator,
    SequentialIdGenerator,
    UUIDIdGenerator,
)
from procurement_kernel.domain.money import (
    apply_field_edit,
    compute_amount,
    sum_amounts,
    to_number,
)
from procurement_kernel.domain.ordering import (
    PRIORITY_GROUP,
    UNCATEGORIZED_GROUP,
    GroupBoundary,
    compute_group_boundaries,
    is_sorted,
    main_group_of,
    sort_items,
    total_amount,
)
from procurement_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "IdGenerator",
    "SequentialIdGenerator",
    "UUIDIdGenerator",
    "apply_field_edit",
    "compute_amount",
    "sum_amounts",
    "to_number",
    "PRIORITY_GROUP",
    "UNCATEGORIZED_GROUP",
    "GroupBoundary",
    "compute_group_boundaries",
    "is_sorted",
    "main_group_of",
    "sort_items",
    "total_amount",
    "Guard",
    "Transition",
    "Workflow",
]
