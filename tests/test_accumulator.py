#!/usr/bin/env python3
"""Tests for statement completion rules."""
import unittest
from neoshell.core.accumulator import should_submit


class TestShouldSubmit(unittest.TestCase):
    """Decide when the buffered lines form a complete statement."""

    def test_single_line_without_terminator_continues(self):
        for line in ["select * from t", "show tables", "foo bar", "a;b", "  select 1 "]:
            self.assertFalse(should_submit([line], 0), line)

    def test_terminated_line_submits(self):
        self.assertTrue(should_submit(["select 1;"], 0))
        self.assertTrue(should_submit(["select *", "from t", "where x=1;"], 2))
        self.assertTrue(should_submit([";"], 0))

    def test_only_just_entered_line_is_checked(self):
        self.assertFalse(should_submit(["select 1;", "from t"], 1))

    def test_exit_and_quit_case_insensitive(self):
        self.assertTrue(should_submit(["exit"], 0))
        self.assertTrue(should_submit(["QUIT"], 0))
        self.assertTrue(should_submit(["  Exit  "], 0))
        # joined without separator across lines
        self.assertTrue(should_submit(["ex", "it"], 1))

    def test_first_line_empty_or_escaped_submits(self):
        self.assertTrue(should_submit([""], 0))
        self.assertTrue(should_submit(["\\foo"], 0))
        self.assertTrue(should_submit(["  \\ ls /"], 0))

    def test_escape_only_counts_on_first_line(self):
        self.assertFalse(should_submit(["select 1", "\\foo"], 1))
        self.assertFalse(should_submit(["select 1", ""], 1))

    def test_semicolon_inside_literal_is_textual(self):
        self.assertTrue(should_submit(["select 'a;"], 0))
        self.assertFalse(should_submit(["select ';' from t"], 0))


if __name__ == "__main__":
    unittest.main()
