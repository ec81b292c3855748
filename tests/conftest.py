"""
Pytest fixtures for the requisitions test suite.

Provides:
- Structured logging capture (parsed JSON records)
- Deterministic clock and sequential id generators
- Editor, lifecycle and recycle bin wired to in-memory stores
- An in-memory SQLite session with all tables created, for the SQL stores
"""

import json
import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from procurement_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from procurement_kernel.domain.clock import DeterministicClock
from procurement_kernel.domain.identifiers import SequentialIdGenerator
from procurement_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from procurement_modules.requisitions.config import RequisitionConfig
from procurement_modules.requisitions.editor import DraftEditor
from procurement_modules.requisitions.models import RequisitionItem
from procurement_modules.requisitions.service import (
    RecycleBinService,
    RequisitionLifecycle,
)
from procurement_modules.requisitions.store import (
    InMemoryQueueStore,
    InMemoryRequisitionStore,
)

FIXED_NOW = datetime(2024, 3, 15, 9, 30, 0, tzinfo=timezone.utc)
FIXED_TODAY = date(2024, 3, 15)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture procurement_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, lifecycle):
            lifecycle.save_draft(draft)
            logs = captured_logs()
            assert any(r["message"] == "requisition_saved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("procurement_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Deterministic collaborators
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def ids():
    """Ids for drafts, items and queue entries: id-1, id-2, ..."""
    return SequentialIdGenerator("id")


@pytest.fixture
def config():
    return RequisitionConfig.with_defaults()


@pytest.fixture
def editor(deterministic_clock, ids, config):
    return DraftEditor(deterministic_clock, ids, config)


@pytest.fixture
def requisition_store(config):
    return InMemoryRequisitionStore(config)


@pytest.fixture
def queue_store():
    return InMemoryQueueStore()


@pytest.fixture
def lifecycle(requisition_store, deterministic_clock, ids, config):
    return RequisitionLifecycle(
        requisition_store,
        clock=deterministic_clock,
        id_generator=ids,
        config=config,
    )


@pytest.fixture
def recycle_bin(queue_store, editor, ids):
    return RecycleBinService(queue_store, editor, ids)


# =============================================================================
# Draft builders
# =============================================================================


@pytest.fixture
def make_item():
    """Factory for line items with consistent amounts."""

    def _make(
        item_id: str,
        category: str = "",
        *,
        name: str = "",
        quantity: str = "1",
        unit_price: str = "0",
        amount: str | None = None,
        is_manual: bool = False,
        is_priority: bool = False,
    ) -> RequisitionItem:
        qty = Decimal(quantity)
        price = Decimal(unit_price)
        return RequisitionItem(
            id=item_id,
            category=category,
            name=name,
            quantity=qty,
            unit_price=price,
            amount=Decimal(amount) if amount is not None else qty * price,
            is_manual=is_manual,
            is_priority=is_priority,
        )

    return _make


@pytest.fixture
def filled_draft(editor, make_item):
    """A new, valid draft holding three sorted items."""
    draft = editor.update_header(editor.new_draft(), title="Office restock")
    items = (
        make_item("paper", "Office/Paper", name="A4 paper", quantity="2", unit_price="5"),
        make_item("toner", "Office/Toner", name="Toner", quantity="1", unit_price="40"),
        make_item("soap", "Supplies", name="Hand soap", quantity="3", unit_price="2.50"),
    )
    return replace(draft, items=items)


# =============================================================================
# SQL fixtures
# =============================================================================


@pytest.fixture
def session():
    """A session on a fresh in-memory SQLite database."""
    init_engine_from_url("sqlite://")
    create_tables()
    db_session = get_session()
    yield db_session
    db_session.close()
    drop_tables()
    reset_engine()
