"""
SQLAlchemy ORM persistence for the Requisitions module.

Responsibility
--------------
Database-backed ``RequisitionStore`` and ``QueueStore`` implementations and
the models behind them: requisitions, their ordered line items, and recycle
queue entries (both the live queue and the snapshots locked in at approval).

Architecture position
---------------------
**Modules layer** -- ORM models plus the two SQL stores.  Inherits from
``TrackedBase`` (kernel db layer).  Domain code never sees these classes;
everything crosses the seam as frozen DTOs via ``to_dto``/``from_dto``.

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (Numeric(38,9)) -- NEVER float.
* Line order is persisted explicitly (``position``), never inferred.
* ``readable_id`` comes from the ``requisition`` sequence counter and is
  written once, on insert.
* Each store call is one transaction: commit on success, rollback and
  ``StoreError`` on any ``SQLAlchemyError``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from procurement_kernel.db.base import TrackedBase
from procurement_kernel.db.sequence import SequenceService
from procurement_kernel.exceptions import RequisitionNotFoundError, StoreError
from procurement_kernel.logging_config import get_logger
from procurement_modules.requisitions.config import RequisitionConfig
from procurement_modules.requisitions.models import (
    QueueEntry,
    Requisition,
    RequisitionItem,
    RequisitionStatus,
)
from procurement_modules.requisitions.recycle_queue import RecycleQueue

logger = get_logger("modules.requisitions.orm")


class _LineColumns:
    """Columns shared by stored line items and queued line items."""

    item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    quantity: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    unit_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    is_manual: Mapped[bool] = mapped_column(default=False)
    is_priority: Mapped[bool] = mapped_column(default=False)

    def item_dto(self) -> RequisitionItem:
        return RequisitionItem(
            id=self.item_id,
            category=self.category,
            name=self.name,
            quantity=Decimal(self.quantity),
            unit_price=Decimal(self.unit_price),
            amount=Decimal(self.amount),
            is_manual=self.is_manual,
            is_priority=self.is_priority,
        )

    @staticmethod
    def item_columns(item: RequisitionItem, position: int) -> dict:
        return {
            "item_id": item.id,
            "position": position,
            "category": item.category,
            "name": item.name,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "amount": item.amount,
            "is_manual": item.is_manual,
            "is_priority": item.is_priority,
        }


# ---------------------------------------------------------------------------
# RequisitionModel
# ---------------------------------------------------------------------------


class RequisitionModel(TrackedBase):
    """
    A stored requisition.

    Maps to the ``Requisition`` DTO in
    ``procurement_modules.requisitions.models``.
    """

    __tablename__ = "requisitions"

    __table_args__ = (
        UniqueConstraint("readable_id", name="uq_requisition_readable_id"),
        Index("idx_requisition_status", "status"),
    )

    readable_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    sequence_number: Mapped[int] = mapped_column(nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    account: Mapped[str] = mapped_column(String(100), nullable=False)
    request_date: Mapped[date] = mapped_column(nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list[RequisitionItemModel]] = relationship(
        back_populates="requisition",
        cascade="all, delete-orphan",
        order_by="RequisitionItemModel.position",
        lazy="selectin",
    )
    queue_snapshot: Mapped[list[QueueEntryModel]] = relationship(
        back_populates="snapshot_of",
        cascade="all, delete-orphan",
        order_by="QueueEntryModel.position",
        lazy="selectin",
    )

    def to_dto(self) -> Requisition:
        return Requisition(
            id=self.id,
            readable_id=self.readable_id,
            title=self.title,
            account=self.account,
            date=self.request_date,
            notes=self.notes,
            items=tuple(line.to_dto() for line in self.items),
            status=RequisitionStatus(self.status),
            rejection_reason=self.rejection_reason,
            queue_snapshot=tuple(entry.to_dto() for entry in self.queue_snapshot),
        )

    def apply_dto(self, dto: Requisition) -> None:
        """Overwrite everything except id, readable id and sequence."""
        self.title = dto.title
        self.account = dto.account
        self.request_date = dto.date
        self.notes = dto.notes
        self.status = RequisitionStatus(dto.status).value
        self.rejection_reason = dto.rejection_reason
        self.items = [
            RequisitionItemModel.from_dto(item, position)
            for position, item in enumerate(dto.items)
        ]
        self.queue_snapshot = [
            QueueEntryModel.from_dto(entry, position)
            for position, entry in enumerate(dto.queue_snapshot)
        ]

    def __repr__(self) -> str:
        return f"<RequisitionModel {self.readable_id} [{self.status}]>"


# ---------------------------------------------------------------------------
# RequisitionItemModel
# ---------------------------------------------------------------------------


class RequisitionItemModel(_LineColumns, TrackedBase):
    """A line item belonging to exactly one requisition."""

    __tablename__ = "requisition_items"

    __table_args__ = (
        Index("idx_requisition_item_parent", "requisition_id"),
    )

    requisition_id: Mapped[str] = mapped_column(
        ForeignKey("requisitions.id", ondelete="CASCADE"), nullable=False,
    )
    requisition: Mapped[RequisitionModel] = relationship(back_populates="items")

    def to_dto(self) -> RequisitionItem:
        return self.item_dto()

    @classmethod
    def from_dto(cls, item: RequisitionItem, position: int) -> RequisitionItemModel:
        return cls(**cls.item_columns(item, position))


# ---------------------------------------------------------------------------
# QueueEntryModel
# ---------------------------------------------------------------------------


class QueueEntryModel(_LineColumns, TrackedBase):
    """
    A recycle queue entry.

    ``snapshot_requisition_id`` is NULL for the live queue and names the
    approved requisition for entries frozen into its queue snapshot.
    """

    __tablename__ = "recycle_queue_entries"

    __table_args__ = (
        Index("idx_queue_snapshot", "snapshot_requisition_id"),
    )

    entry_id: Mapped[str] = mapped_column(String(64), nullable=False)
    date_removed: Mapped[datetime] = mapped_column(nullable=False)
    original_requisition_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    snapshot_requisition_id: Mapped[str | None] = mapped_column(
        ForeignKey("requisitions.id", ondelete="CASCADE"), nullable=True,
    )
    snapshot_of: Mapped[RequisitionModel | None] = relationship(
        back_populates="queue_snapshot",
    )

    def to_dto(self) -> QueueEntry:
        return QueueEntry(
            id=self.entry_id,
            item_data=self.item_dto(),
            date_removed=self.date_removed,
            original_requisition_id=self.original_requisition_id,
        )

    @classmethod
    def from_dto(cls, entry: QueueEntry, position: int) -> QueueEntryModel:
        return cls(
            entry_id=entry.id,
            date_removed=entry.date_removed,
            original_requisition_id=entry.original_requisition_id,
            **cls.item_columns(entry.item_data, position),
        )


# ---------------------------------------------------------------------------
# SQL stores
# ---------------------------------------------------------------------------


class SqlRequisitionStore:
    """
    ``RequisitionStore`` over a SQLAlchemy session.

    Transaction boundary: each public method commits on success and rolls
    back on failure, so a failed call leaves the database as it was.
    """

    def __init__(self, session: Session, config: RequisitionConfig | None = None):
        self._session = session
        self._config = config or RequisitionConfig.with_defaults()
        self._sequences = SequenceService(session)

    def create_requisition(self, requisition: Requisition) -> Requisition:
        def _create() -> RequisitionModel:
            if self._session.get(RequisitionModel, requisition.id) is not None:
                raise StoreError(
                    "create_requisition", f"requisition already exists: {requisition.id}"
                )
            sequence = self._sequences.next_value(SequenceService.REQUISITION)
            model = RequisitionModel(
                id=requisition.id,
                sequence_number=sequence,
                readable_id=self._config.format_readable_id(sequence),
            )
            model.apply_dto(requisition)
            self._session.add(model)
            return model

        return self._write("create_requisition", _create).to_dto()

    def update_requisition(self, requisition: Requisition) -> Requisition:
        def _update() -> RequisitionModel:
            model = self._require(requisition.id)
            model.apply_dto(requisition)
            return model

        return self._write("update_requisition", _update).to_dto()

    def approve_requisition(self, requisition: Requisition) -> Requisition:
        return self.update_requisition(requisition)

    def delete_requisition(self, requisition_id: str) -> None:
        def _delete() -> None:
            self._session.delete(self._require(requisition_id))

        self._write("delete_requisition", _delete)

    def get_requisition(self, requisition_id: str) -> Requisition | None:
        model = self._session.get(RequisitionModel, requisition_id)
        return model.to_dto() if model is not None else None

    def list_requisitions(
        self,
        statuses: Iterable[RequisitionStatus] | None = None,
    ) -> list[Requisition]:
        stmt = select(RequisitionModel).order_by(RequisitionModel.sequence_number.desc())
        if statuses is not None:
            stmt = stmt.where(
                RequisitionModel.status.in_([RequisitionStatus(s).value for s in statuses])
            )
        return [model.to_dto() for model in self._session.scalars(stmt)]

    def _require(self, requisition_id: str) -> RequisitionModel:
        model = self._session.get(RequisitionModel, requisition_id)
        if model is None:
            raise RequisitionNotFoundError(requisition_id)
        return model

    def _write(self, operation: str, work):
        try:
            result = work()
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error(
                "requisition_store_write_failed",
                extra={"operation": operation},
                exc_info=True,
            )
            raise StoreError(operation, str(exc)) from exc
        except Exception:
            self._session.rollback()
            raise
        return result


class SqlQueueStore:
    """``QueueStore`` keeping the live recycle queue in ``recycle_queue_entries``."""

    def __init__(self, session: Session):
        self._session = session

    def load_queue(self) -> RecycleQueue:
        stmt = (
            select(QueueEntryModel)
            .where(QueueEntryModel.snapshot_requisition_id.is_(None))
            .order_by(QueueEntryModel.position)
        )
        return RecycleQueue(
            entries=tuple(model.to_dto() for model in self._session.scalars(stmt))
        )

    def save_queue(self, queue: RecycleQueue) -> None:
        try:
            self._session.execute(
                delete(QueueEntryModel).where(
                    QueueEntryModel.snapshot_requisition_id.is_(None)
                )
            )
            self._session.add_all(
                QueueEntryModel.from_dto(entry, position)
                for position, entry in enumerate(queue.entries)
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error("queue_store_write_failed", exc_info=True)
            raise StoreError("save_queue", str(exc)) from exc
        logger.debug("queue_saved", extra={"queue_length": len(queue)})
