import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from range_core.cli import main
from range_core.db import ACTIONS, FOLDERS, db_store_documents
from range_core.selection import SELECT
from range_core.store import RangeStore


class TestCli(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.db = os.path.join(self._td.name, "ranges.db")
        store = RangeStore()
        store.apply_mutation("1", "AA", SELECT, "raise")
        store.save(self.db)

    def tearDown(self):
        self._td.cleanup()

    def _run(self, *argv):
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(["--db", self.db, *argv])
        return code, buf.getvalue()

    def test_given_stored_range_when_printing_then_matrix_and_combos_shown(self):
        code, out = self._run("--range", "1")
        self.assertEqual(code, 0)
        self.assertIn("AA:R", out)
        self.assertIn("raise: 6", out)
        self.assertIn("unassigned: 1320", out)

    def test_given_unknown_range_when_printing_then_exit_code_1(self):
        code, _ = self._run("--range", "42")
        self.assertEqual(code, 1)

    def test_given_list_flag_when_run_then_folders_and_actions_listed(self):
        code, out = self._run("--list")
        self.assertEqual(code, 0)
        self.assertIn("[1] Folder", out)
        self.assertIn("raise: Raise #8b5cf6", out)

    def test_given_export_then_import_when_run_then_store_restored(self):
        path = os.path.join(self._td.name, "export.json")
        self.assertEqual(self._run("--export", path)[0], 0)
        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
        self.assertEqual(doc["folders"][0]["ranges"][0]["hands"], {"AA": "raise"})

        doc["folders"][0]["ranges"][0]["hands"] = {"KK": "raise"}
        with open(path, "w", encoding="utf-8") as f:
            json.dump(doc, f)
        self.assertEqual(self._run("--import", path)[0], 0)
        self.assertEqual(RangeStore.load(self.db).range("1").hands, {"KK": "raise"})

    def test_given_broken_import_file_when_run_then_exit_code_1(self):
        path = os.path.join(self._td.name, "broken.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("{not json")
        self.assertEqual(self._run("--import", path)[0], 1)

    def test_given_duplicate_stored_actions_when_listing_then_first_kept(self):
        a = {"type": "simple", "id": "a", "name": "A", "color": "#111111"}
        db_store_documents(self.db, {ACTIONS: [a, a]})
        code, out = self._run("--list")
        self.assertEqual(code, 0)
        self.assertEqual(out.count("a: A #111111"), 1)

    def test_given_unloadable_folders_when_run_then_exit_code_1(self):
        db_store_documents(self.db, {FOLDERS: [{"name": "no id"}]})
        self.assertEqual(self._run("--list")[0], 1)


if __name__ == "__main__":
    unittest.main(verbosity=2)
