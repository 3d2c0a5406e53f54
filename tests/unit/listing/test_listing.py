"""Tests for resolved-directory listings."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from browsey.ignore import create_ignore_matcher
from browsey.listing import list_directory
from browsey.security import resolve_safe_path


class ListDirectoryTests(unittest.TestCase):
    def test_lists_directories_first_then_names_case_insensitively(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / "b.txt").write_text("bb", encoding="utf-8")
            (root / "A.md").write_text("a", encoding="utf-8")
            (root / "zeta").mkdir()
            (root / "Alpha").mkdir()

            listing = list_directory(resolve_safe_path(root, "/"), False, create_ignore_matcher([]))

            self.assertEqual(listing.path, "/")
            self.assertEqual(listing.absolute_path, str(root))
            self.assertEqual([item.name for item in listing.items], ["Alpha", "zeta", "A.md", "b.txt"])
            b_txt = listing.items[-1]
            self.assertEqual(b_txt.type, "file")
            self.assertEqual(b_txt.size, 2)
            self.assertEqual(b_txt.extension, "txt")
            self.assertTrue(b_txt.modified.endswith("Z"))
            self.assertIsNone(listing.items[0].extension)

    def test_hidden_and_ignored_entries_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / "docs").mkdir()
            (root / "docs" / ".env").write_text("x", encoding="utf-8")
            (root / "docs" / "debug.log").write_text("x", encoding="utf-8")
            (root / "docs" / "guide.md").write_text("x", encoding="utf-8")

            safe = resolve_safe_path(root, "docs")
            listing = list_directory(safe, False, create_ignore_matcher(["*.log"]))
            with_hidden = list_directory(safe, True, create_ignore_matcher([]))

            self.assertEqual(listing.path, "/docs")
            self.assertEqual([item.name for item in listing.items], ["guide.md"])
            self.assertEqual([item.name for item in with_hidden.items], [".env", "debug.log", "guide.md"])

    def test_missing_directory_raises_file_not_found(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            safe = resolve_safe_path(Path(tmp), "missing")

            with self.assertRaises(FileNotFoundError):
                list_directory(safe, False, create_ignore_matcher([]))

    def test_file_target_raises_not_a_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "file.txt").write_text("x", encoding="utf-8")

            with self.assertRaises(NotADirectoryError):
                list_directory(resolve_safe_path(root, "file.txt"), False, create_ignore_matcher([]))

    def test_to_dict_uses_wire_field_names(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / "x.PY").write_text("", encoding="utf-8")

            payload = list_directory(resolve_safe_path(root, ""), False, create_ignore_matcher([])).to_dict()

            self.assertEqual(payload["path"], "/")
            item = payload["items"][0]
            self.assertEqual(set(item), {"name", "type", "size", "modified", "extension", "absolutePath"})
            self.assertEqual(item["extension"], "py")


if __name__ == "__main__":
    unittest.main()
