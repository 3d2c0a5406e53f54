"""Tests for request-path containment under a served root."""

from __future__ import annotations

import os
import unittest
from pathlib import Path

from browsey.security import PathResolver, resolve_safe_path

ROOT = Path("/srv/root")


class ResolveSafePathTests(unittest.TestCase):
    def test_plain_relative_path_resolves_under_root(self) -> None:
        safe = resolve_safe_path(ROOT, "docs/readme.md")

        self.assertIsNotNone(safe)
        self.assertEqual(safe.relative_path, "docs/readme.md")
        self.assertEqual(safe.full_path, Path("/srv/root/docs/readme.md"))

    def test_root_aliases_resolve_to_root_itself(self) -> None:
        for request_path in ("", "/", "//", "\\", "./"):
            with self.subTest(request_path=request_path):
                safe = resolve_safe_path(ROOT, request_path)
                self.assertIsNotNone(safe)
                self.assertEqual(safe.relative_path, "")
                self.assertEqual(safe.full_path, ROOT)

    def test_traversal_segments_are_rejected(self) -> None:
        for request_path in (
            "..",
            "/../../etc/passwd",
            "a/../../b",
            "a/../b",
            "..\\..\\windows",
            "docs\\..\\..\\secret",
            "//..//etc",
        ):
            with self.subTest(request_path=request_path):
                self.assertIsNone(resolve_safe_path(ROOT, request_path))

    def test_nul_byte_is_rejected_anywhere(self) -> None:
        for request_path in ("a\0b", "\0", "docs/readme.md\0", "\0/.."):
            with self.subTest(request_path=request_path):
                self.assertIsNone(resolve_safe_path(ROOT, request_path))

    def test_backslashes_and_repeated_slashes_are_normalized(self) -> None:
        safe = resolve_safe_path(ROOT, "\\docs\\\\guides//intro.md")

        self.assertIsNotNone(safe)
        self.assertEqual(safe.relative_path, "docs/guides/intro.md")
        self.assertEqual(safe.full_path, Path("/srv/root/docs/guides/intro.md"))

    def test_dot_segments_are_dropped_from_relative_path(self) -> None:
        safe = resolve_safe_path(ROOT, "./docs/./readme.md")

        self.assertIsNotNone(safe)
        self.assertEqual(safe.relative_path, "docs/readme.md")
        self.assertEqual(safe.full_path, Path("/srv/root/docs/readme.md"))

    def test_names_that_only_start_with_dots_are_allowed(self) -> None:
        safe = resolve_safe_path(ROOT, "...hidden/..notes")

        self.assertIsNotNone(safe)
        self.assertEqual(safe.relative_path, "...hidden/..notes")

    def test_every_successful_resolution_stays_inside_root(self) -> None:
        samples = ["a", "a/b/c", "/x//y", "..a", "a..", "....", "a\\b", ".", "~", "$HOME", "a/..b/c"]
        for request_path in samples:
            with self.subTest(request_path=request_path):
                safe = resolve_safe_path(ROOT, request_path)
                self.assertIsNotNone(safe)
                relative = os.path.relpath(safe.full_path, ROOT)
                self.assertFalse(relative == ".." or relative.startswith(".." + os.sep))

    def test_path_resolver_binds_root(self) -> None:
        resolver = PathResolver(ROOT)

        self.assertEqual(resolver.resolve("notes.txt").full_path, Path("/srv/root/notes.txt"))
        self.assertIsNone(resolver.resolve("../notes.txt"))


if __name__ == "__main__":
    unittest.main()
