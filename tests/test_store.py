"""Tests for the persisted catalog slot."""

import json
import os
import stat
import tempfile
import unittest
from decimal import Decimal

from menunotes.services.menu.errors import CatalogStoreError
from menunotes.services.menu.models import Catalog, Menu, MenuItem
from menunotes.services.menu.store import CatalogStore


class CatalogStoreTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = CatalogStore(self._tmp.name)

    def test_missing_slot_is_empty(self):
        catalog = self.store.load()
        self.assertEqual(catalog.menus, [])
        self.assertEqual(catalog.version, 2)
        self.assertFalse(self.store.path.exists())

    def test_save_then_load(self):
        catalog = Catalog(
            menus=[
                Menu(
                    id="lunch",
                    name="Lunch",
                    items=[MenuItem(id="bun", name="Bun", price=Decimal("2.5"))],
                    allow_public_order=True,
                )
            ]
        )
        saved = self.store.save(catalog)
        self.assertTrue(saved.menus[0].public_id)

        loaded = self.store.load()
        self.assertEqual(loaded.model_dump(), saved.model_dump())
        self.assertEqual(loaded.menus[0].items[0].price, Decimal("2.5"))

        with open(self.store.path, encoding="utf-8") as f:
            raw = json.load(f)
        self.assertEqual(raw["menus"][0]["allowOrder"], True)
        self.assertEqual(raw["menus"][0]["items"][0]["price"], 2.5)
        self.assertEqual(stat.S_IMODE(os.stat(self.store.path).st_mode), 0o600)
        self.assertEqual(
            [p for p in os.listdir(self._tmp.name) if p.endswith(".tmp")], []
        )

    def test_namespaces_are_separate(self):
        other = CatalogStore(self._tmp.name, "cafe")
        other.save(Catalog(menus=[Menu(id="tea", name="Tea")]))
        self.assertEqual(other.path.name, "catalog.cafe.json")
        self.assertEqual(self.store.load().menus, [])

    def test_bare_list_slot(self):
        self.store.path.write_text('[{"id": "lunch", "name": "Lunch"}]', "utf-8")
        catalog = self.store.load()
        self.assertEqual([m.id for m in catalog.menus], ["lunch"])

    def test_corrupt_slot_raises(self):
        self.store.path.write_text("{not json", "utf-8")
        with self.assertRaises(CatalogStoreError):
            self.store.load()
        # The corrupt file is left in place
        self.assertEqual(self.store.path.read_text("utf-8"), "{not json")

    def test_invalid_slot_raises(self):
        self.store.path.write_text('{"menus": [{"items": "nope"}]}', "utf-8")
        with self.assertRaises(CatalogStoreError):
            self.store.load()

    def test_update(self):
        self.store.update(
            lambda c: c.model_copy(update={"menus": [Menu(id="a", name="A")]})
        )
        self.assertEqual(self.store.load().menus[0].id, "a")


if __name__ == "__main__":
    unittest.main()
