"""
Tests for blob storage backends.

Usage:
    python -m pytest tests/test_backends.py -v
"""
import os
import tempfile
import unittest
from pathlib import Path

from notekeep.backends import (
    FileBackend, MemoryBackend, SqliteBackend, open_backend, validate_key,
)
from notekeep.errors import NotekeepError, StorageError
from notekeep.models import Note, decode_notes, encode_notes
from notekeep.store import NoteStore


class TestValidateKey(unittest.TestCase):

    def test_plain_keys(self):
        for key in ("notes", "work.notes", "notes-2", "a_b"):
            self.assertEqual(validate_key(key), key)

    def test_rejects_unsafe_keys(self):
        for key in ("", "../notes", "a/b", ".hidden", "no spaces"):
            with self.assertRaises(ValueError):
                validate_key(key)


class TestMemoryBackend(unittest.TestCase):

    def test_get_missing(self):
        self.assertIsNone(MemoryBackend().get("notes"))

    def test_set_then_get(self):
        backend = MemoryBackend()
        backend.set("notes", b"[]")
        self.assertEqual(backend.get("notes"), b"[]")

    def test_initial_data(self):
        backend = MemoryBackend({"notes": b"x"})
        self.assertEqual(backend.get("notes"), b"x")


class TestFileBackend(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name) / "data"
        self.backend = FileBackend(self.root)

    def tearDown(self):
        self.tmp.cleanup()

    def test_get_missing(self):
        self.assertIsNone(self.backend.get("notes"))

    def test_set_creates_root_and_file(self):
        self.backend.set("notes", b"[1]")
        self.assertEqual((self.root / "notes.json").read_bytes(), b"[1]")
        self.assertEqual(self.backend.get("notes"), b"[1]")

    def test_overwrite(self):
        self.backend.set("notes", b"old")
        self.backend.set("notes", b"new")
        self.assertEqual(self.backend.get("notes"), b"new")

    def test_no_temp_files_left(self):
        self.backend.set("notes", b"[]")
        leftovers = [p.name for p in self.root.iterdir() if p.name.endswith(".tmp")]
        self.assertEqual(leftovers, [])

    def test_write_failure_raises_storage_error(self):
        blocker = Path(self.tmp.name) / "blocker"
        blocker.write_text("not a directory")
        backend = FileBackend(blocker)
        with self.assertRaises(StorageError):
            backend.set("notes", b"[]")

    def test_read_failure_raises_storage_error(self):
        (self.root / "notes.json").mkdir(parents=True)
        with self.assertRaises(StorageError):
            self.backend.get("notes")

    def test_storage_error_is_notekeep_error(self):
        self.assertTrue(issubclass(StorageError, NotekeepError))

    def test_store_roundtrip_through_files(self):
        store = NoteStore(self.backend)
        store.add("Groceries", "Milk, eggs")

        fresh = NoteStore(FileBackend(self.root))
        fresh.load()
        self.assertEqual(fresh.notes, store.notes)


class TestSqliteBackend(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self.tmp.name) / "nested" / "notekeep.db"
        self.backend = SqliteBackend(self.db_path)

    def tearDown(self):
        self.tmp.cleanup()

    def test_creates_database(self):
        self.assertTrue(self.db_path.exists())

    def test_get_missing(self):
        self.assertIsNone(self.backend.get("notes"))

    def test_upsert(self):
        self.backend.set("notes", b"one")
        self.backend.set("notes", b"two")
        self.assertEqual(self.backend.get("notes"), b"two")

    def test_keys_independent(self):
        self.backend.set("a", b"1")
        self.backend.set("b", b"2")
        self.assertEqual(self.backend.get("a"), b"1")

    def test_reopen_keeps_data(self):
        notes = [Note(title="t", content="c")]
        self.backend.set("notes", encode_notes(notes))
        reopened = SqliteBackend(self.db_path)
        self.assertEqual(decode_notes(reopened.get("notes")), notes)


class TestOpenBackend(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.home = self.tmp.name

    def tearDown(self):
        self.tmp.cleanup()

    def config(self, backend):
        return {"notekeep": {"home": self.home}, "storage": {"backend": backend}}

    def test_memory(self):
        self.assertIsInstance(open_backend(self.config("memory")), MemoryBackend)

    def test_file(self):
        backend = open_backend(self.config("file"))
        self.assertIsInstance(backend, FileBackend)
        self.assertEqual(backend.root, Path(self.home))

    def test_sqlite(self):
        backend = open_backend(self.config("sqlite"))
        self.assertIsInstance(backend, SqliteBackend)
        self.assertTrue(os.path.exists(os.path.join(self.home, "notekeep.db")))

    def test_unknown(self):
        with self.assertRaises(ValueError):
            open_backend(self.config("redis"))


if __name__ == "__main__":
    unittest.main()
