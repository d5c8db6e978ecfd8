#!/usr/bin/env python3
"""Tests for statement normalization and shell meta commands."""
import unittest
from neoshell.core.preprocess import preprocess, Statement, ShellControl


class TestPreprocess(unittest.TestCase):

    def test_trims_and_strips_terminators(self):
        result = preprocess("  select * from t;;  ")
        self.assertIsInstance(result, Statement)
        self.assertEqual(result.normalized, "select * from t")
        self.assertEqual(result.original, "  select * from t;;  ")

    def test_strips_separated_terminators(self):
        self.assertEqual(preprocess("select 1 ; ;").normalized, "select 1")

    def test_inner_semicolon_kept(self):
        self.assertEqual(preprocess("select ';' as x;").normalized, "select ';' as x")

    def test_idempotent(self):
        for raw in ["select 1;", "  foo bar ;;", "\\ ls /", "a ; ; ;", "x"]:
            once = preprocess(raw).normalized
            self.assertEqual(preprocess(once).normalized, once, raw)

    def test_exit_quit_terminate(self):
        for raw in ["exit", "QUIT;", "  Exit ;; "]:
            result = preprocess(raw)
            self.assertIsInstance(result, ShellControl)
            self.assertTrue(result.is_terminate)
            self.assertEqual(result.exit_code, 0)

    def test_clear(self):
        result = preprocess("CLEAR;")
        self.assertEqual(result, ShellControl.clear())
        self.assertFalse(result.is_terminate)

    def test_words_containing_exit_are_statements(self):
        self.assertIsInstance(preprocess("exit now;"), Statement)
        self.assertIsInstance(preprocess("clear all"), Statement)


if __name__ == "__main__":
    unittest.main()
