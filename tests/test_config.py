#!/usr/bin/env python3
"""Tests for configuration loading, saving and logging setup."""
import json
import logging
import os
import tempfile
import unittest
from neoshell.cli.repl import SessionSettings
from neoshell.utils.config import Config, coerce_value, DEFAULT_CONFIG
from neoshell.utils.logging_setup import configure_logging


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "config.json")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_defaults_without_file(self):
        config = Config(self.path)
        self.assertEqual(config.settings, DEFAULT_CONFIG)
        self.assertEqual(config.get('max_shell_depth'), 8)

    def test_save_and_reload(self):
        config = Config(self.path)
        config.set('timing', True)
        config.set('database', 'shop.duckdb')
        config.save()
        reloaded = Config(self.path)
        self.assertTrue(reloaded.get('timing'))
        self.assertEqual(reloaded.get('database'), 'shop.duckdb')

    def test_invalid_file_falls_back_to_defaults(self):
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write("[1, 2")
        self.assertEqual(Config(self.path).settings, DEFAULT_CONFIG)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump([1, 2], f)
        self.assertEqual(Config(self.path).settings, DEFAULT_CONFIG)

    def test_env_var_selects_file(self):
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump({"output_format": "json"}, f)
        os.environ['NEOSHELL_CONFIG'] = self.path
        self.assertEqual(Config().get('output_format'), 'json')

    def test_history_path(self):
        config = Config(self.path)
        config.set('history_file', None)
        self.assertIsNone(config.history_path())
        config.set('history_file', '~/h')
        self.assertEqual(config.history_path(), os.path.expanduser('~/h'))

    def test_coerce_value(self):
        self.assertIs(coerce_value('ON'), True)
        self.assertIs(coerce_value('false'), False)
        self.assertIsNone(coerce_value('None'))
        self.assertEqual(coerce_value('42'), 42)
        self.assertEqual(coerce_value('csv'), 'csv')

    def test_session_settings_from_config(self):
        config = Config(self.path)
        config.set('output_format', 'JSONL')
        config.set('display_limit', 'many')
        settings = SessionSettings.from_config(config, color=False)
        self.assertEqual(settings.output_format, 'jsonl')
        self.assertEqual(settings.display_limit, 1000)
        self.assertFalse(settings.color)


class TestLogging(unittest.TestCase):

    def test_configure_logging_writes_file(self):
        with tempfile.TemporaryDirectory() as d:
            log_file = os.path.join(d, "shell.log")
            configure_logging("DEBUG", log_file)
            logging.getLogger("neoshell.test").debug("hello log")
            for handler in logging.getLogger().handlers:
                handler.flush()
            with open(log_file, encoding='utf-8') as f:
                self.assertIn("hello log", f.read())
            configure_logging("WARNING")
            self.assertEqual(logging.getLogger().level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
