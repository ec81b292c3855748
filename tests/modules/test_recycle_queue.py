"""Tests for the recycle queue (procurement_modules/requisitions/recycle_queue.py)."""

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest

from procurement_kernel.domain.ordering import is_sorted
from procurement_kernel.exceptions import QueueEntryNotFoundError
from procurement_modules.requisitions.models import QueueEntry
from procurement_modules.requisitions.recycle_queue import RecycleQueue

from conftest import FIXED_NOW


def _entry(entry_id, item, minutes=0):
    return QueueEntry(
        id=entry_id,
        item_data=item,
        date_removed=FIXED_NOW + timedelta(minutes=minutes),
    )


class TestEnqueue:

    def test_appends_one_entry(self, make_item):
        queue = RecycleQueue()
        grown = queue.enqueue(_entry("q1", make_item("a")))
        assert len(queue) == 0
        assert len(grown) == 1

    def test_no_deduplication(self, make_item):
        item = make_item("a", "Office")
        queue = RecycleQueue().enqueue(_entry("q1", item)).enqueue(_entry("q2", item))
        assert [e.id for e in queue] == ["q1", "q2"]

    def test_newest_first(self, make_item):
        queue = (
            RecycleQueue()
            .enqueue(_entry("old", make_item("a"), minutes=0))
            .enqueue(_entry("new", make_item("b"), minutes=5))
        )
        assert [e.id for e in queue.newest_first()] == ["new", "old"]

    def test_removals_stamped_by_clock(self, editor, deterministic_clock, filled_draft):
        draft, first = editor.remove_item(filled_draft, "paper")
        deterministic_clock.advance(90)
        _, second = editor.remove_item(draft, "soap")
        queue = RecycleQueue().enqueue(first).enqueue(second)
        assert second.date_removed == FIXED_NOW + timedelta(seconds=90)
        assert [e.item_data.id for e in queue.newest_first()] == ["soap", "paper"]


class TestRestore:

    def test_round_trip_gets_new_id_and_sorted_position(self, editor, ids, filled_draft):
        draft, entry = editor.remove_item(filled_draft, "paper")
        queue = RecycleQueue().enqueue(entry)

        result = queue.restore(entry.id, draft, ids)

        assert len(result.queue) == 0
        assert result.entry == entry
        restored = result.draft.items[0]
        assert restored.id not in {"paper", entry.id}
        assert replace(restored, id="paper") == filled_draft.find_item("paper")
        assert is_sorted(result.draft.items)
        assert len(result.draft.items) == len(filled_draft.items)

    def test_office_and_safety_scenario(self, editor, ids, make_item):
        draft = replace(
            editor.update_header(editor.new_draft(), title="Site"),
            items=(
                make_item("safety", "Safety", amount="50", is_priority=True),
                make_item("office", "Office", amount="10"),
            ),
        )
        draft, entry = editor.remove_item(draft, "office")
        queue = RecycleQueue().enqueue(entry)
        assert len(draft.items) == 1
        assert queue.entries[0].item_data.category == "Office"

        result = queue.restore(entry.id, draft, ids)
        assert len(result.draft.items) == 2
        assert len(result.queue) == 0
        assert [i.category for i in result.draft.items] == ["Safety", "Office"]
        assert editor.total(result.draft) == Decimal("60")

    def test_same_item_restored_twice_gets_distinct_ids(self, editor, ids, filled_draft):
        draft, entry = editor.remove_item(filled_draft, "toner")
        queue = RecycleQueue().enqueue(entry).enqueue(replace(entry, id="dup"))
        first = queue.restore(entry.id, draft, ids)
        second = first.queue.restore("dup", first.draft, ids)
        toner_ids = [i.id for i in second.draft.items if i.category == "Office/Toner"]
        assert len(toner_ids) == 2
        assert len(set(toner_ids)) == 2

    def test_consumed_entry_raises(self, editor, ids, filled_draft):
        draft, entry = editor.remove_item(filled_draft, "soap")
        result = RecycleQueue().enqueue(entry).restore(entry.id, draft, ids)
        with pytest.raises(QueueEntryNotFoundError) as exc_info:
            result.queue.restore(entry.id, result.draft, ids)
        assert exc_info.value.entry_id == entry.id


class TestPurge:

    def test_purge_one(self, make_item):
        queue = RecycleQueue().enqueue(_entry("q1", make_item("a"))).enqueue(_entry("q2", make_item("b")))
        purged = queue.purge("q1")
        assert [e.id for e in purged] == ["q2"]
        assert len(queue) == 2

    def test_purge_missing(self):
        with pytest.raises(QueueEntryNotFoundError):
            RecycleQueue().purge("nope")

    def test_purge_all(self, make_item):
        queue = RecycleQueue().enqueue(_entry("q1", make_item("a")))
        assert len(queue.purge_all()) == 0

    def test_get(self, make_item):
        queue = RecycleQueue().enqueue(_entry("q1", make_item("a")))
        assert queue.get("q1").item_data.id == "a"
        with pytest.raises(QueueEntryNotFoundError):
            queue.get("q2")


class TestDurability:
    """Queue length moves by exactly one per removal, restore or purge."""

    def test_length_accounting(self, editor, ids, filled_draft):
        draft = filled_draft
        queue = RecycleQueue()
        for item_id in ("paper", "toner", "soap"):
            draft, entry = editor.remove_item(draft, item_id)
            before = len(queue)
            queue = queue.enqueue(entry)
            assert len(queue) == before + 1

        result = queue.restore(queue.entries[0].id, draft, ids)
        assert len(result.queue) == 2
        queue = result.queue.purge(result.queue.entries[0].id)
        assert len(queue) == 1


class TestSummaries:

    def test_split_by_priority(self, make_item):
        queue = (
            RecycleQueue()
            .enqueue(_entry("q1", make_item("a", amount="12.50", is_priority=True)))
            .enqueue(_entry("q2", make_item("b", amount="7")))
            .enqueue(_entry("q3", make_item("c", amount="3")))
        )
        summary = queue.summaries()
        assert summary.priority_total == Decimal("12.50")
        assert summary.standard_total == Decimal("10")
        assert summary.total == Decimal("22.50")

    def test_empty(self):
        summary = RecycleQueue().summaries()
        assert summary.total == Decimal("0")

    def test_out_of_range_amounts_do_not_raise(self, make_item):
        queue = (
            RecycleQueue()
            .enqueue(_entry("q1", make_item("a", amount="9E+999999")))
            .enqueue(_entry("q2", make_item("b", amount="9E+999999")))
            .enqueue(_entry("q3", make_item("c", amount="4", is_priority=True)))
        )
        summary = queue.summaries()
        assert summary.standard_total == Decimal("0")
        assert summary.total == Decimal("4")
