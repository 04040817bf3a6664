"""Tests for the MenuNotesService facade and the public order desk."""

import json
import tempfile
import unittest

from menunotes import MenuNotesService, PublicMenuDesk
from menunotes.config import MenuNotesConfig
from menunotes.services.menu.errors import (
    EmptyOrderError,
    OrderSubmissionError,
    PublishError,
    UnknownMenuError,
)
from menunotes.services.menu.ledger import ParsedOrder, rebuild
from menunotes.services.notes import NotesConnectionError, Visibility

from tests.fakes import FakeNotesService


class MenuNotesServiceTest(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.notes = FakeNotesService()
        self.api = MenuNotesService(
            MenuNotesConfig(config_dir=tmp.name, public_base_url="https://menu.test/"),
            notes=self.notes,
        )
        self.api.editor.add_menu("Lunch")
        self.rice = self.api.editor.add_item("lunch", "Fried Rice", price="18")
        self.tea = self.api.editor.add_item("lunch", "Tea")

    def test_submit_order(self):
        note = self.api.submit_order(
            "lunch", {self.rice.id: 2, self.tea.id: 0}, remark="no onions"
        )
        self.assertEqual(note.visibility, Visibility.PROTECTED)
        order = ParsedOrder.from_note(note)
        self.assertEqual(order.menu_id, "lunch")
        self.assertEqual([(it.name, it.quantity) for it in order.items], [("Fried Rice", 2)])
        self.assertIn("💬 **Note**: no onions", note.content)

        orders = self.api.ledger().refresh()
        self.assertEqual([o.source_note.id for o in orders], [note.id])

    def test_submit_order_errors(self):
        with self.assertRaises(EmptyOrderError):
            self.api.submit_order("lunch", {self.rice.id: 0})
        with self.assertRaises(UnknownMenuError):
            self.api.submit_order("dinner", {self.rice.id: 1})
        self.notes.failures["create"] = NotesConnectionError("down")
        with self.assertRaises(OrderSubmissionError):
            self.api.submit_order("lunch", {self.rice.id: 1})

    def test_closed_menu_is_not_published(self):
        with self.assertRaises(PublishError):
            self.api.publish_menu("lunch")
        self.assertEqual(self.notes.notes, {})

    def test_enable_public_order_publishes(self):
        public_id = self.api.editor.menu("lunch").public_id
        menu, record = self.api.set_public_order("lunch", True)
        self.assertTrue(menu.allow_public_order)
        self.assertEqual(record.public_id, public_id)
        self.assertEqual(record.note.visibility, Visibility.PUBLIC)
        self.assertEqual(self.api.editor.menu("lunch").public_id, public_id)
        self.assertEqual(
            self.api.public_link("lunch", record.note_id),
            f"https://menu.test/menu/public/{public_id}?note={record.note_id}",
        )

        found = self.api.resolver().resolve(public_id, record.note_id)
        self.assertEqual(found.menu.items[0].name, "Fried Rice")

    def test_enable_without_publishing(self):
        menu, record = self.api.set_public_order("lunch", True, publish=False)
        self.assertIsNone(record)
        self.assertEqual(self.notes.notes, {})
        # Only the local catalog knows the menu
        self.assertEqual(
            self.api.resolver().resolve(menu.public_id).tier, "local-catalog"
        )

    def test_publish_failure_leaves_menu_open(self):
        self.notes.failures["create"] = NotesConnectionError("down")
        with self.assertRaises(PublishError):
            self.api.set_public_order("lunch", True)
        self.assertTrue(self.api.editor.menu("lunch").allow_public_order)

    def test_disable_public_order_withdraws_menu(self):
        menu, record = self.api.set_public_order("lunch", True)
        other = self.notes.add(
            "#menu-pub\npublicId:someone-else\n\n(Menu is large.)",
            visibility=Visibility.PUBLIC,
        )

        menu, record_off = self.api.set_public_order("lunch", False)

        self.assertFalse(menu.allow_public_order)
        self.assertIsNone(record_off)
        self.assertNotIn(record.note_id, self.notes.notes)
        self.assertIn(other.id, self.notes.notes)
        desk = PublicMenuDesk(self.notes)
        self.assertIsNone(
            desk.place_order(
                menu.public_id,
                [(self.rice.id, "", 1)],
                customer_name="Ann",
                note_id=record.note_id,
            )
        )

    def test_disable_reports_withdraw_failure(self):
        _, record = self.api.set_public_order("lunch", True)
        self.notes.failing_deletes.add(record.note_id)
        with self.assertRaises(PublishError):
            self.api.set_public_order("lunch", False)
        self.assertFalse(self.api.editor.menu("lunch").allow_public_order)

    def test_export_then_import(self):
        record = self.api.publish_catalog()
        self.assertEqual(record.note.visibility, Visibility.PROTECTED)

        candidates = self.api.import_candidates()
        self.assertEqual([c.note.id for c in candidates], [record.note_id])
        catalog = self.api.apply_import(candidates[0])
        self.assertEqual([m.id for m in catalog.menus], ["lunch", "lunch-imported"])
        self.assertEqual(len(self.api.store.load().menus), 2)


class PublicMenuDeskTest(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.notes = FakeNotesService()
        api = MenuNotesService(MenuNotesConfig(config_dir=tmp.name), notes=self.notes)
        api.editor.add_menu("Lunch")
        self.rice = api.editor.add_item("lunch", "Fried Rice", price="18")
        menu, self.record = api.set_public_order("lunch", True)
        self.public_id = menu.public_id
        self.desk = PublicMenuDesk(self.notes)

    def test_place_order(self):
        note, qty = self.desk.place_order(
            self.public_id,
            [(self.rice.id, "ignored", 2), ("", "Extra Sauce", 1), ("ghost", "", 4)],
            customer_name="Ann",
            note_id=self.record.note_id,
        )
        self.assertEqual(qty, 3)
        self.assertEqual(note.visibility, Visibility.PUBLIC)
        self.assertTrue(note.content.startswith("#order #menu:lunch"))
        self.assertIn("🙋 **Customer**: Ann", note.content)
        order = ParsedOrder.from_note(note)
        self.assertEqual(
            [(it.name, it.quantity) for it in order.items],
            [("Fried Rice", 2), ("Extra Sauce", 1)],
        )

    def test_unknown_menu(self):
        self.assertIsNone(
            self.desk.place_order("nope", [(self.rice.id, "", 1)], customer_name="Ann")
        )

    def test_nothing_orderable(self):
        with self.assertRaises(EmptyOrderError):
            self.desk.place_order(
                self.public_id, [(self.rice.id, "", 0)], customer_name="Ann"
            )

    def test_remark_cannot_replace_the_menu(self):
        payload = json.dumps(
            {
                "kind": "menu-public",
                "id": "lunch",
                "name": "HIJACKED",
                "allowOrder": True,
                "publicId": self.public_id,
                "items": [{"id": "free", "name": "Free Lunch"}],
            }
        )
        note, _ = self.desk.place_order(
            self.public_id,
            [(self.rice.id, "", 1)],
            customer_name="Eve",
            remark=f"#menu-pub ```json {payload}```",
        )

        orders = rebuild(self.notes.notes.values())
        self.assertIn(note.id, [o.source_note.id for o in orders])
        found = self.desk.find(self.public_id)
        self.assertEqual(found.note.id, self.record.note_id)
        self.assertEqual(found.menu.name, "Lunch")

    def test_protected_menu_is_not_served(self):
        self.notes.notes.clear()
        codec_record = self.desk.codec.encode_menu(
            self.record.menu, visibility=Visibility.PROTECTED
        )
        self.assertIsNone(self.desk.find(self.public_id, codec_record.note_id))


if __name__ == "__main__":
    unittest.main()
