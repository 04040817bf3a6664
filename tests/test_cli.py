"""Tests for the menunotes command line."""

import tempfile
import unittest
from datetime import datetime, timezone
from unittest import mock

from typer.testing import CliRunner

from menunotes import MenuNotesService
from menunotes.cli.main import app
from menunotes.services.menu.store import CatalogStore

from tests.fakes import FakeNotesService


class CliTest(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = tmp.name
        self.notes = FakeNotesService()
        patcher = mock.patch(
            "menunotes.cli.utils.context.MenuNotesService",
            side_effect=lambda config: MenuNotesService(config, notes=self.notes),
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        self.runner = CliRunner()

    def invoke(self, *args, **kwargs):
        return self.runner.invoke(app, ["--config-dir", self.dir, *args], **kwargs)

    def _seed_menu(self):
        self.assertEqual(self.invoke("menus", "add", "Lunch").exit_code, 0)
        result = self.invoke("menus", "add-item", "lunch", "Fried Rice", "--price", "18")
        self.assertEqual(result.exit_code, 0, result.output)
        return CatalogStore(self.dir).load().menus[0].items[0].id

    def test_menu_commands(self):
        result = self.invoke("menus", "add", "Lunch")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Created menu lunch", result.output)

        result = self.invoke("menus", "bulk-add", "lunch", input="Rice\n\nTea\n")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Added 2 item(s)", result.output)

        result = self.invoke("menus", "show", "lunch")
        self.assertIn("Rice", result.output)
        self.assertIn("Tea", result.output)

        result = self.invoke("menus", "list")
        self.assertIn("lunch", result.output)

        result = self.invoke("menus", "remove", "lunch", "--force")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(CatalogStore(self.dir).load().menus, [])

    def test_errors_exit_nonzero(self):
        result = self.invoke("menus", "show", "nope")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unknown menu", result.output)

        self.invoke("menus", "add", "Lunch")
        result = self.invoke("menus", "add-item", "lunch", "Rice", "--price=-3")
        self.assertEqual(result.exit_code, 1)

    def test_submit_and_list_orders(self):
        item_id = self._seed_menu()
        result = self.invoke("orders", "submit", "lunch", f"{item_id}=2", "-r", "hot")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Created order note", result.output)

        result = self.invoke("orders", "list")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Fried Rice", result.output)

        result = self.invoke("orders", "summary", "--menu", "lunch")
        self.assertIn("1 orders, 2 items", result.output)

        result = self.invoke("orders", "submit", "lunch", f"{item_id}=0")
        self.assertEqual(result.exit_code, 1)

    def test_list_without_orders(self):
        result = self.invoke("orders", "list", "--days", "7")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("No orders found", result.output)

    def test_clear_today(self):
        now = datetime.now(timezone.utc)
        self.notes.add("#order\n- Tea × 1", create_time=now)
        self.notes.add("#order\n- Tea × 2", create_time=now)
        old = self.notes.add("#order\n- Tea × 3")
        self.notes.failing_deletes.add("n2")

        result = self.invoke("orders", "clear-today", "--force")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Deleted 1 order(s)", result.output)
        self.assertIn("1 deletion(s) failed", result.output)
        self.assertEqual(sorted(self.notes.notes), ["n2", old.id])

    def test_public_flow(self):
        self._seed_menu()
        result = self.invoke("menus", "public", "lunch", "--enable")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("open for public ordering", result.output)
        self.assertIn("/menu/public/", result.output)

        public_id = CatalogStore(self.dir).load().menus[0].public_id
        result = self.invoke("public", "resolve", public_id)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("public-scan", result.output)

        result = self.invoke("public", "resolve", "no-such-menu")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Menu unavailable", result.output)

        result = self.invoke("menus", "public", "lunch", "--disable")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("closed for public ordering", result.output)
        self.assertEqual(self.notes.notes, {})
        result = self.invoke("public", "resolve", public_id)
        self.assertEqual(result.exit_code, 1)

    def test_export_and_import(self):
        self._seed_menu()
        result = self.invoke("menus", "export")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("inline", result.output)

        result = self.invoke("menus", "import", "--pick", "0")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Imported 1 menu(s)", result.output)
        ids = [m.id for m in CatalogStore(self.dir).load().menus]
        self.assertEqual(ids, ["lunch", "lunch-imported"])

        result = self.invoke("menus", "import", "--pick", "5")
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
