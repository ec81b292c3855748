"""
Requisition persistence seams.

``RequisitionStore`` and ``QueueStore`` are the collaborator interfaces the
lifecycle and recycle bin call after computing the target state.  The
in-memory implementations here back the test suite and single-process
hosts; ``orm.py`` provides the SQL-backed ones.

Contract for every implementation
---------------------------------
* ``create_requisition`` assigns ``readable_id`` exactly once, from a
  counter that never reuses a number (deleting REQ-002 does not free it).
* ``update_requisition`` never changes ``readable_id``.
* A failing call raises and leaves previously stored state intact.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol, runtime_checkable

from procurement_kernel.exceptions import RequisitionNotFoundError, StoreError
from procurement_kernel.logging_config import get_logger
from procurement_modules.requisitions.config import RequisitionConfig
from procurement_modules.requisitions.models import Requisition, RequisitionStatus
from procurement_modules.requisitions.recycle_queue import RecycleQueue

logger = get_logger("modules.requisitions.store")


@runtime_checkable
class RequisitionStore(Protocol):
    """Persistent home of requisitions."""

    def create_requisition(self, requisition: Requisition) -> Requisition:
        """Insert a new requisition; returns it with ``readable_id`` assigned."""
        ...

    def update_requisition(self, requisition: Requisition) -> Requisition:
        """Replace a stored requisition, keeping its ``readable_id``."""
        ...

    def delete_requisition(self, requisition_id: str) -> None:
        ...

    def approve_requisition(self, requisition: Requisition) -> Requisition:
        """Persist a requisition the lifecycle has moved to ``approved``."""
        ...

    def get_requisition(self, requisition_id: str) -> Requisition | None:
        ...

    def list_requisitions(
        self,
        statuses: Iterable[RequisitionStatus] | None = None,
    ) -> list[Requisition]:
        """Requisitions, newest first, optionally filtered by status."""
        ...


@runtime_checkable
class QueueStore(Protocol):
    """Persistent home of the recycle queue."""

    def load_queue(self) -> RecycleQueue:
        ...

    def save_queue(self, queue: RecycleQueue) -> None:
        ...


class InMemoryRequisitionStore:
    """Dict-backed ``RequisitionStore``."""

    def __init__(self, config: RequisitionConfig | None = None):
        self._config = config or RequisitionConfig.with_defaults()
        self._records: dict[str, Requisition] = {}
        self._sequence = 0

    def create_requisition(self, requisition: Requisition) -> Requisition:
        if requisition.id in self._records:
            raise StoreError(
                "create_requisition", f"requisition already exists: {requisition.id}"
            )
        self._sequence += 1
        stored = replace(
            requisition,
            readable_id=self._config.format_readable_id(self._sequence),
        )
        self._records[stored.id] = stored
        logger.debug(
            "requisition_stored",
            extra={"requisition_id": stored.id, "readable_id": stored.readable_id},
        )
        return stored

    def update_requisition(self, requisition: Requisition) -> Requisition:
        existing = self._require(requisition.id)
        stored = replace(requisition, readable_id=existing.readable_id)
        self._records[stored.id] = stored
        return stored

    def delete_requisition(self, requisition_id: str) -> None:
        self._require(requisition_id)
        del self._records[requisition_id]

    def approve_requisition(self, requisition: Requisition) -> Requisition:
        return self.update_requisition(requisition)

    def get_requisition(self, requisition_id: str) -> Requisition | None:
        return self._records.get(requisition_id)

    def list_requisitions(
        self,
        statuses: Iterable[RequisitionStatus] | None = None,
    ) -> list[Requisition]:
        wanted = None if statuses is None else frozenset(statuses)
        # Insertion order is creation order; newest first like the list views
        return [
            r for r in reversed(self._records.values())
            if wanted is None or r.status in wanted
        ]

    def _require(self, requisition_id: str) -> Requisition:
        try:
            return self._records[requisition_id]
        except KeyError:
            raise RequisitionNotFoundError(requisition_id) from None


class InMemoryQueueStore:
    """Holds the last saved ``RecycleQueue``."""

    def __init__(self, queue: RecycleQueue | None = None):
        self._queue = queue or RecycleQueue()

    def load_queue(self) -> RecycleQueue:
        return self._queue

    def save_queue(self, queue: RecycleQueue) -> None:
        self._queue = queue
