#!/usr/bin/env python3
"""End-to-end tests for the shell loop."""
import io
import unittest
from neoshell.cli.commands import CommandInvoker
from neoshell.cli.repl import (
    Actor, Shell, ShellState, SessionSettings, ScriptedLineSource, render_prompt,
)
from neoshell.core.errors import InputError
from neoshell.core.history import HistoryRecorder, MemoryHistoryStore
from neoshell.core.sql_engine import Database
from neoshell.utils.config import Config
from neoshell.utils.constants import CLEAR_SCREEN

PRIMARY = "sys neoshell» "
CONTINUATION = ">  "


class _RecordingShell(Shell):
    """Shell whose dispatch targets are recorded instead of executed."""

    def __init__(self, *args, fail_query=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []
        self.fail_query = fail_query

    def run_query(self, sql):
        self.calls.append(('query', sql))
        if self.fail_query:
            raise RuntimeError("engine exploded")

    def run_named(self, name, args):
        self.calls.append(('command', name, list(args)))


class _FailingSource:
    def __init__(self, failures, then=()):
        self.failures = failures
        self.lines = list(then)
        self.prompts = []

    def read_line(self, prompt):
        self.prompts.append(prompt)
        if self.failures:
            self.failures -= 1
            raise InputError("terminal went away")
        return self.lines.pop(0) if self.lines else None


class ShellTestCase(unittest.TestCase):

    def setUp(self):
        self.db = Database()
        self.out = io.StringIO()
        self.history = HistoryRecorder(MemoryHistoryStore(), out=self.out)
        self.config = Config()
        self.settings = SessionSettings(color=False)

    def tearDown(self):
        self.db.close()

    def make_shell(self, lines, cls=Shell, **kwargs):
        source = ScriptedLineSource(lines) if isinstance(lines, list) else lines
        shell = cls(self.db, source, out=self.out, history=self.history, config=self.config,
                    settings=self.settings, **kwargs)
        return shell, source


class TestSessionLoop(ShellTestCase):

    def test_multiline_statement_dispatched_once(self):
        shell, source = self.make_shell(["SELECT * FROM t", "WHERE x=1;"], cls=_RecordingShell)
        self.assertEqual(shell.run(), 0)
        self.assertEqual(shell.calls, [('query', 'SELECT * FROM t WHERE x=1')])
        self.assertEqual(self.history.entries(), ["SELECT * FROM t\nWHERE x=1;"])
        self.assertEqual(source.prompts, [PRIMARY, CONTINUATION, PRIMARY])

    def test_dispatch_failure_reported_and_prompt_reset(self):
        shell, source = self.make_shell(["select", "1;", "select 2;"], cls=_RecordingShell, fail_query=True)
        self.assertEqual(shell.run(), 0)
        self.assertIn("ERR sql: engine exploded", self.out.getvalue())
        self.assertEqual(source.prompts[2], PRIMARY)
        self.assertEqual(len(shell.calls), 2)

    def test_exit_stops_loop(self):
        shell, source = self.make_shell(["select 1;", "EXIT", "select 2;"], cls=_RecordingShell)
        self.assertEqual(shell.run(), 0)
        self.assertEqual(shell.calls, [('query', 'select 1')])
        self.assertEqual(self.history.entries(), ["select 1;"])

    def test_empty_lines_skipped(self):
        shell, source = self.make_shell(["", "", "select 1;"], cls=_RecordingShell)
        shell.run()
        self.assertEqual(shell.calls, [('query', 'select 1')])

    def test_escaped_command_submits_on_enter(self):
        shell, _ = self.make_shell(["\\foo bar", "foo baz;"], cls=_RecordingShell)
        shell.run()
        self.assertEqual(shell.calls, [('command', 'foo', ['bar']), ('command', 'foo', ['baz'])])
        self.assertEqual(self.history.entries(), ["\\foo bar", "foo baz;"])

    def test_clear_writes_control_sequence(self):
        shell, _ = self.make_shell(["clear;"], cls=_RecordingShell)
        shell.run()
        self.assertEqual(self.out.getvalue(), CLEAR_SCREEN)
        self.assertEqual(shell.calls, [])
        self.assertEqual(self.history.entries(), [])

    def test_classification_error_reported(self):
        shell, _ = self.make_shell(['\\echo "unterminated', "select 1;"], cls=_RecordingShell)
        self.assertEqual(shell.run(), 0)
        self.assertIn("ERR cannot split statement", self.out.getvalue())
        self.assertEqual(shell.calls, [('query', 'select 1')])

    def test_input_errors_recoverable_then_fatal(self):
        shell, _ = self.make_shell(_FailingSource(2, then=["select 1;"]), cls=_RecordingShell)
        self.assertEqual(shell.run(), 0)
        self.assertEqual(self.out.getvalue().count("ERR terminal went away"), 2)
        self.assertEqual(shell.calls, [('query', 'select 1')])

        shell, _ = self.make_shell(_FailingSource(100), cls=_RecordingShell)
        self.assertEqual(shell.run(), 1)


class TestWithDatabase(ShellTestCase):

    def test_sql_round_trip(self):
        shell, _ = self.make_shell([
            "create table t (id integer, name varchar);",
            "insert into t values (1, 'x'),",
            "(2, 'y');",
            "select name from t",
            "order by id;",
        ])
        shell.run()
        text = self.out.getvalue()
        self.assertIn("2 rows selected.", text)
        self.assertEqual(list(shell.last_result.rows()), [('x',), ('y',)])

    def test_engine_error_keeps_loop_alive(self):
        shell, _ = self.make_shell(["select * from nope;", "select 42 as answer;"])
        shell.run()
        text = self.out.getvalue()
        self.assertIn("ERR ", text)
        self.assertIn("42", text)

    def test_builtin_commands(self):
        shell, _ = self.make_shell([
            "create table people (id integer);",
            "\\show tables",
            "desc people;",
            "\\set timing on",
            "\\history 3",
        ])
        shell.run()
        text = self.out.getvalue()
        self.assertIn("people", text)
        self.assertIn("column_name", text)
        self.assertIn("timing = True", text)
        self.assertIn("desc people;", text)
        self.assertTrue(self.settings.timing)

    def test_unknown_command(self):
        commands = CommandInvoker(allow_external=False)
        shell, _ = self.make_shell(["nosuchcommand arg;"], commands=commands)
        shell.run()
        self.assertIn("ERR nosuchcommand: command not found", self.out.getvalue())


class TestNestedShell(ShellTestCase):

    def test_nested_one_shot(self):
        shell, _ = self.make_shell(["\\ select 7 as seven;"])
        shell.run()
        self.assertIn("seven", self.out.getvalue())
        self.assertEqual(self.history.entries(), ["\\ select 7 as seven;"])

    def test_nested_one_shot_keeps_sql_text(self):
        shell, _ = self.make_shell([
            "create table t (id integer);",
            "insert into t values (5);",
            "\\ select * from t",
            "\\ select 'hello' as greeting",
        ])
        shell.run()
        text = self.out.getvalue()
        self.assertNotIn("ERR", text)
        self.assertNotIn("'*'", text)
        self.assertIn("greeting", text)
        self.assertIn("hello", text)

    def test_nested_result_visible_to_parent(self):
        shell, _ = self.make_shell([
            "create table t (id integer);",
            "insert into t values (1);",
            "\\ select 'x' as label, 2 as n",
        ])
        shell.run()
        self.assertEqual(list(shell.last_result.rows()), [('x', 2)])

    def test_ddl_prints_executed(self):
        shell, _ = self.make_shell(["create table t (id integer);"])
        shell.run()
        self.assertEqual(self.out.getvalue(), "executed.\n")

    def test_nested_interactive_exit_returns_to_parent(self):
        shell, source = self.make_shell(["\\", "select 1 as inner_col;", "exit", "select 2 as outer_col;"])
        self.assertEqual(shell.run(), 0)
        text = self.out.getvalue()
        self.assertIn("inner_col", text)
        self.assertIn("outer_col", text)
        self.assertIn("sys neoshell(1)» ", source.prompts)
        self.assertEqual(shell.state.depth, 0)

    def test_depth_limit(self):
        self.config.set('max_shell_depth', 1)
        shell, _ = self.make_shell(["\\", "\\", "exit"])
        shell.run()
        self.assertIn("ERR nested shell depth limit (1) reached", self.out.getvalue())


class TestPromptAndActor(unittest.TestCase):

    def test_actor_from_env(self):
        self.assertEqual(Actor.from_env({}), Actor('sys', 'manager'))
        actor = Actor.from_env({'NEOSHELL_USER': 'bob', 'NEOSHELL_PASSWORD': 'pw'})
        self.assertEqual((actor.user, actor.password), ('bob', 'pw'))

    def test_render_prompt(self):
        state = ShellState(actor=Actor('alice', 'x'))
        self.assertEqual(render_prompt(state, color=False), "alice neoshell» ")
        self.assertIn("alice", render_prompt(state, color=True))
        state.line_index = 2
        self.assertEqual(render_prompt(state, color=False), ">  ")


if __name__ == "__main__":
    unittest.main()
