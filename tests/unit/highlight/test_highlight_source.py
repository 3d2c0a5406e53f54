"""Tests for preview text sanitization and Pygments highlighting."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from browsey.highlight import colorize_source, read_text, sanitize_terminal_text


class HighlightTests(unittest.TestCase):
    def test_sanitize_escapes_control_bytes_but_keeps_whitespace(self) -> None:
        self.assertEqual(sanitize_terminal_text("a\x1b[2Jb\tc\r\n"), "a\\x1b[2Jb\tc\r\n")
        self.assertEqual(sanitize_terminal_text("\x9bplain"), "\\x9bplain")
        self.assertEqual(sanitize_terminal_text("clean"), "clean")

    def test_colorize_source_emits_ansi_for_known_language(self) -> None:
        rendered = colorize_source("def f():\n    return 1\n", Path("module.py"))

        self.assertIn("\x1b[", rendered)
        self.assertIn("return", rendered)

    def test_colorize_source_survives_unknown_style_and_extension(self) -> None:
        rendered = colorize_source("just text\n", Path("notes.unknownext"), style="no-such-style")

        self.assertIn("just text", rendered)

    def test_read_text_falls_back_to_latin1(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "legacy.txt"
            path.write_bytes(b"caf\xe9")

            self.assertEqual(read_text(path), "café")


if __name__ == "__main__":
    unittest.main()
