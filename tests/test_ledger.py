"""Tests for the order ledger and its projections."""

import unittest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from menunotes.services.menu import ledger
from menunotes.services.menu.ledger import OrderLedger, ParsedOrder
from menunotes.services.notes import Note, NotesConnectionError

from tests.fakes import BASE_TIME, FakeNotesService


def _note(note_id, content, minutes=0, tags=()):
    return Note(
        id=note_id,
        content=content,
        tags=frozenset(tags),
        create_time=BASE_TIME + timedelta(minutes=minutes),
    )


class RebuildTest(unittest.TestCase):
    def setUp(self):
        self.notes = [
            _note("a", "#order #menu:lunch\n- Fried Rice × 2 × ¥18", minutes=1),
            _note("b", "shopping list", minutes=2),
            _note("c", "- Tea × 1", minutes=3, tags=["order"]),
            _note("d", '#menu-pub\n```json\n{"name": "#order"}\n```', minutes=4),
            _note("e", "#order\n- Bun × 3 × ¥2.5", minutes=3),
        ]

    def test_keeps_orders_newest_first(self):
        orders = ledger.rebuild(self.notes)
        # "c" and "e" share a timestamp and keep input order
        self.assertEqual([o.source_note.id for o in orders], ["c", "e", "a"])

    def test_totals(self):
        by_id = {o.source_note.id: o for o in ledger.rebuild(self.notes)}
        self.assertEqual(by_id["a"].menu_id, "lunch")
        self.assertEqual(by_id["a"].total_quantity, 2)
        self.assertEqual(by_id["a"].total_amount, Decimal("36"))
        self.assertIsNone(by_id["c"].total_amount)
        self.assertEqual(by_id["e"].total_amount, Decimal("7.5"))

    def test_idempotent(self):
        self.assertEqual(ledger.rebuild(self.notes), ledger.rebuild(self.notes))

    def test_partially_priced_order(self):
        order = ParsedOrder.from_note(
            _note("x", "#order\n- Tea × 2\n- Rice × 1 × ¥10")
        )
        self.assertEqual(order.total_quantity, 3)
        self.assertEqual(order.total_amount, Decimal("10"))

    def test_missing_timestamp_sorts_last(self):
        undated = Note(id="u", content="#order\n- Tea × 1")
        orders = ledger.rebuild([undated] + self.notes)
        self.assertEqual(orders[-1].source_note.id, "u")


class ProjectionTest(unittest.TestCase):
    def setUp(self):
        day = datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc)
        self.orders = ledger.rebuild(
            [
                Note("1", "#order #menu:lunch\n- Rice × 2 × ¥18", create_time=day),
                Note(
                    "2",
                    "#order #menu:dinner\n- Rice × 1 × ¥20\n- Tea × 1",
                    create_time=day - timedelta(days=1),
                ),
                Note("3", "#order\n- Tea × 4", create_time=day - timedelta(days=7)),
            ]
        )

    def test_filter_by_menu(self):
        self.assertEqual(
            [o.source_note.id for o in ledger.filter_by_menu(self.orders, "lunch")],
            ["1"],
        )
        self.assertEqual(len(ledger.filter_by_menu(self.orders, None)), 3)

    def test_filter_by_date_is_inclusive(self):
        found = ledger.filter_by_date(
            self.orders, date(2024, 5, 9), date(2024, 5, 10)
        )
        self.assertEqual([o.source_note.id for o in found], ["1", "2"])
        self.assertEqual(
            len(ledger.filter_by_date(self.orders, end=date(2024, 5, 3))), 1
        )

    def test_preset_range(self):
        today = date(2024, 5, 10)
        self.assertEqual(ledger.preset_range(1, today=today), (today, today))
        self.assertEqual(
            ledger.preset_range(7, today=today), (date(2024, 5, 4), today)
        )
        found = ledger.orders_today(self.orders, today=today)
        self.assertEqual([o.source_note.id for o in found], ["1"])

    def test_aggregate_by_item(self):
        rows = ledger.aggregate_by_item(self.orders)
        self.assertEqual(
            [(r.name, r.quantity, r.revenue) for r in rows],
            [("Rice", 3, Decimal("56")), ("Tea", 5, None)],
        )

    def test_menu_ids(self):
        self.assertEqual(ledger.menu_ids(self.orders), ["dinner", "lunch"])

    def test_projections_do_not_mutate(self):
        before = list(self.orders)
        ledger.filter_by_menu(self.orders, "lunch")
        ledger.aggregate_by_item(self.orders)
        self.assertEqual(self.orders, before)


class OrderLedgerTest(unittest.TestCase):
    def setUp(self):
        self.notes = FakeNotesService(page_size=2)
        for i in range(5):
            self.notes.add(f"#order\n- Item{i} × {i + 1}")
        self.notes.add("not an order")

    def test_pages_accumulate(self):
        led = OrderLedger(self.notes)
        self.assertEqual(len(led.fetch_next_page()), 1)
        self.assertTrue(led.has_more)
        led.fetch_next_page()
        led.fetch_next_page()
        self.assertFalse(led.has_more)
        self.assertEqual(led.pages_loaded, 3)
        self.assertEqual(len(led.orders), 5)
        # Further calls are no-ops
        led.fetch_next_page()
        self.assertEqual(led.pages_loaded, 3)

    def test_refetch_does_not_double_count(self):
        led = OrderLedger(self.notes)
        led.refresh(pages=3)
        led.refresh(pages=3)
        self.assertEqual(len(led.orders), 5)

    def test_delete_orders_isolates_failures_and_reloads(self):
        led = OrderLedger(self.notes)
        led.refresh(pages=3)
        targets = led.orders[:3]
        self.notes.failing_deletes.add(targets[1].source_note.id)

        result = led.delete_orders(targets)

        self.assertEqual(result.success_count, 2)
        self.assertEqual(result.failure_count, 1)
        self.assertEqual(result.failed[0][0], targets[1].source_note.id)
        self.assertEqual(len(led.orders), 3)
        self.assertIn(targets[1].source_note.id, [o.source_note.id for o in led.orders])

    def test_delete_orders_keeps_counts_when_reload_fails(self):
        led = OrderLedger(self.notes)
        led.refresh(pages=3)
        targets = led.orders[:2]
        self.notes.failures["list_page"] = NotesConnectionError("down")

        result = led.delete_orders(targets)

        self.assertEqual(result.success_count, 2)
        self.assertEqual(result.failure_count, 0)
        self.assertEqual(result.reload_error, "down")
        self.assertEqual(led.orders, [])
        for order in targets:
            self.assertNotIn(order.source_note.id, self.notes.notes)


if __name__ == "__main__":
    unittest.main()
