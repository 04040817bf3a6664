"""Tests for scanning notes for importable catalogs."""

import unittest

from menunotes.services.menu.codec import CatalogCodec
from menunotes.services.menu.importer import scan_catalog_definitions
from menunotes.services.notes import NotesConnectionError

from tests.fakes import FakeNotesService


class _FlakyNotes(FakeNotesService):
    """Fails every page fetch after the first."""

    def list_page(self, page_token=None, **kwargs):
        if page_token is not None:
            raise NotesConnectionError("connection reset")
        return super().list_page(page_token, **kwargs)


def _seed(notes):
    notes.add('#menu-def\n```json\n{"menus": [{"id": "old", "name": "Old"}]}\n```')
    notes.add("#menu-def\n```json\n{broken\n```")
    notes.add("#order\n- Rice × 1")
    notes.add('#menu-def\n```json\n{"version": 2, "menus": []}\n```')
    notes.add(
        "#menu-def\n```json\n"
        '[{"id": "a", "name": "A"}, {"id": "b"}, {"id": "c", "name": "C"},'
        ' {"id": "d", "name": "D"}]\n```'
    )


class ScanTest(unittest.TestCase):
    def test_finds_decodable_definitions_newest_first(self):
        notes = FakeNotesService(page_size=2)
        _seed(notes)
        found = scan_catalog_definitions(notes, CatalogCodec(notes))
        self.assertEqual([c.note.id for c in found], ["n5", "n1"])
        self.assertEqual(found[0].menu_count, 4)
        self.assertEqual(found[0].preview, ("A", "b", "C"))

    def test_page_cap(self):
        notes = FakeNotesService(page_size=2)
        _seed(notes)
        found = scan_catalog_definitions(notes, CatalogCodec(notes), max_pages=1)
        self.assertEqual([c.note.id for c in found], ["n5"])

    def test_first_page_failure_propagates(self):
        notes = FakeNotesService()
        notes.failures["list_page"] = NotesConnectionError("down")
        with self.assertRaises(NotesConnectionError):
            scan_catalog_definitions(notes, CatalogCodec(notes))

    def test_later_page_failure_keeps_results(self):
        notes = _FlakyNotes(page_size=1)
        _seed(notes)
        found = scan_catalog_definitions(notes, CatalogCodec(notes))
        self.assertEqual([c.note.id for c in found], ["n5"])


if __name__ == "__main__":
    unittest.main()
