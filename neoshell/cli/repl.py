r"""Interactive shell loop.

Input is read one physical line at a time. Lines accumulate until the
statement is complete: a line ending in ';', or a single line that is empty,
starts with a backslash, or is exit/quit. The completed statement is then
normalized, recorded in the history and routed:

  SELECT ... ;            SQL statement (any query verb), run on the database
  \name args              named command, submitted on Enter
  name args;              named command, terminated form
  \ [command]             nested shell (runs one command when given)
  clear                   clear the screen
  exit / quit             leave the shell

Errors never end the loop; they are reported as a single 'ERR ...' line.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, TextIO
import logging
import os
import re
import sys
import time

from neoshell.cli.commands import CommandInvoker, command_names
from neoshell.core.accumulator import should_submit
from neoshell.core.dispatch import Dispatcher
from neoshell.core.errors import DispatchError, InputError, UserInputError
from neoshell.core.history import HistoryRecorder, MemoryHistoryStore
from neoshell.core.preprocess import preprocess, ShellControl
from neoshell.core.sql_engine import Database, QueryResult
from neoshell.utils.config import Config
from neoshell.utils.constants import (
    CLEAR_SCREEN, CONTINUATION_PROMPT_COLOR, CONTINUATION_PROMPT_PLAIN, DEFAULT_PASSWORD,
    DEFAULT_USER, PASSWORD_ENV, PRIMARY_PROMPT_COLOR, PRIMARY_PROMPT_PLAIN, PROMPT_NAME,
    QUERY_VERBS, SUPPORTED_OUTPUT_FORMATS, USER_ENV, ESCAPE_PREFIX,
)
from neoshell.utils.output_writer import write_result

try:
    import readline  # type: ignore
except ImportError:  # pragma: no cover
    readline = None
# Attempt gnureadline fallback if readline missing
if readline is None:
    try:
        import gnureadline as readline  # type: ignore
    except ImportError:  # pragma: no cover
        readline = None

logger = logging.getLogger(__name__)

# Consecutive line source failures tolerated before the loop gives up
MAX_INPUT_ERRORS = 5

SQL_KEYWORDS = [
    'SELECT', 'FROM', 'WHERE', 'GROUP BY', 'HAVING', 'ORDER BY', 'LIMIT', 'OFFSET', 'JOIN',
    'LEFT JOIN', 'INNER JOIN', 'CROSS JOIN', 'UNION', 'UNION ALL', 'ON', 'USING', 'AS',
    'DISTINCT', 'CASE', 'WHEN', 'THEN', 'ELSE', 'END', 'AND', 'OR', 'NOT', 'IN', 'IS NULL',
    'IS NOT NULL', 'BETWEEN', 'LIKE', 'EXISTS', 'INTO', 'VALUES', 'SET', 'TABLE', 'VIEW',
] + sorted(QUERY_VERBS)

# Shell used by the readline completer
_GLOBAL_SHELL: Optional["Shell"] = None


@dataclass(frozen=True)
class Actor:
    """Operator identity, resolved once at startup."""
    user: str
    password: str

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Actor":
        env = os.environ if environ is None else environ
        return cls(user=env.get(USER_ENV) or DEFAULT_USER,
                   password=env.get(PASSWORD_ENV) or DEFAULT_PASSWORD)


@dataclass
class ShellState:
    actor: Actor
    depth: int = 0
    buffer: List[str] = field(default_factory=list)
    line_index: int = 0

    def reset(self) -> None:
        self.buffer = []
        self.line_index = 0


@dataclass
class SessionSettings:
    output_format: str = 'table'
    heading: bool = True
    timing: bool = False
    color: bool = False
    expanded: bool = False
    display_limit: int = 1000
    max_col_width: int = 50

    @classmethod
    def from_config(cls, config: Config, color: Optional[bool] = None) -> "SessionSettings":
        settings = cls()
        for key in settings.as_dict():
            value = config.get(key)
            if value is not None:
                try:
                    settings.update(key, value)
                except UserInputError as e:
                    logger.warning("Ignoring config %s: %s", key, e)
        if color is not None:
            settings.color = color
        return settings

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def get(self, key: str) -> Any:
        if key not in self.as_dict():
            raise UserInputError(f"unknown setting: {key}")
        return getattr(self, key)

    def update(self, key: str, value: Any) -> None:
        current = self.get(key)
        if isinstance(current, bool):
            if not isinstance(value, bool):
                raise UserInputError(f"{key} expects on|off")
        elif isinstance(current, int):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise UserInputError(f"{key} expects a non-negative integer")
        elif key == 'output_format':
            value = str(value).lower()
            if value not in SUPPORTED_OUTPUT_FORMATS:
                raise UserInputError(f"output_format must be one of {', '.join(SUPPORTED_OUTPUT_FORMATS)}")
        setattr(self, key, value)


def render_prompt(state: ShellState, color: bool = True) -> str:
    if state.line_index > 0:
        return CONTINUATION_PROMPT_COLOR if color else CONTINUATION_PROMPT_PLAIN
    name = PROMPT_NAME if state.depth == 0 else f"{PROMPT_NAME}({state.depth})"
    template = PRIMARY_PROMPT_COLOR if color else PRIMARY_PROMPT_PLAIN
    return template.format(user=state.actor.user, name=name)


class LineSource(Protocol):
    def read_line(self, prompt: str) -> Optional[str]: ...


class ReadlineLineSource:
    """Terminal input through input(); None signals end of input."""

    def read_line(self, prompt: str) -> Optional[str]:
        try:
            return input(prompt)
        except EOFError:
            print()  # newline on Ctrl-D
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"read failed: {e}") from e


class ScriptedLineSource:
    """Replays fixed lines; used for piped input and tests."""

    def __init__(self, lines: Iterable[str], echo: Optional[TextIO] = None):
        self._lines: Iterator[str] = iter(lines)
        self.echo = echo
        self.prompts: List[str] = []

    def read_line(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        line = next(self._lines, None)
        if line is not None:
            line = line.rstrip('\r\n')
            if self.echo is not None:
                print(f"{prompt}{line}", file=self.echo)
        return line


class Shell:
    """One session loop. Nested shells are further instances sharing the
    database, output, settings and history."""

    def __init__(self, database: Database, source: LineSource, out: Optional[TextIO] = None,
                 history: Optional[HistoryRecorder] = None, config: Optional[Config] = None,
                 settings: Optional[SessionSettings] = None, state: Optional[ShellState] = None,
                 commands: Optional[CommandInvoker] = None):
        self.database = database
        self.source = source
        self.out = out or sys.stdout
        self.config = config or Config()
        self.history = history or HistoryRecorder(MemoryHistoryStore(), out=self.out)
        self.settings = settings or SessionSettings.from_config(self.config)
        self.state = state or ShellState(actor=Actor.from_env())
        self.commands = commands or CommandInvoker(allow_external=bool(self.config.get('allow_external', True)))
        self.dispatcher = Dispatcher(self.run_query, self.run_nested, self.run_named)
        self.last_result: Optional[QueryResult] = None
        self.current_statement: Optional[str] = None

    # --- loop ---

    def run(self) -> int:
        """Run until exit/quit or end of input; returns the exit status."""
        input_errors = 0
        while True:
            prompt = render_prompt(self.state, self.settings.color)
            try:
                line = self.source.read_line(prompt)
            except InputError as e:
                input_errors += 1
                self.report(e)
                if input_errors >= MAX_INPUT_ERRORS:
                    logger.error("Giving up after %d consecutive input errors", input_errors)
                    return 1
                continue
            except KeyboardInterrupt:
                self._interrupted()
                continue
            input_errors = 0
            if line is None:
                if self.state.buffer:
                    logger.debug("Discarding unterminated statement at end of input")
                return 0
            if not line and not self.state.buffer:
                continue
            try:
                code = self.feed(line)
            except KeyboardInterrupt:
                self._interrupted()
                continue
            if code is not None:
                return code

    def feed(self, line: str) -> Optional[int]:
        """Accumulate one physical line; returns an exit status on exit/quit."""
        self.state.buffer.append(line)
        if not should_submit(self.state.buffer, len(self.state.buffer) - 1):
            self.state.line_index += 1
            return None
        lines = self.state.buffer
        self.state.reset()
        return self.submit(lines)

    def submit(self, lines: Sequence[str]) -> Optional[int]:
        outcome = preprocess(' '.join(lines))
        if isinstance(outcome, ShellControl):
            return self._control(outcome)
        if not outcome.normalized:
            return None
        self.history.record('\n'.join(lines))
        self._execute(outcome.normalized)
        return None

    def run_command(self, text: str) -> bool:
        """Run ``text`` as one complete statement without touching the history."""
        outcome = preprocess(text)
        if isinstance(outcome, ShellControl):
            self._control(outcome)
            return True
        if not outcome.normalized:
            return True
        return self._execute(outcome.normalized)

    def _execute(self, normalized: str) -> bool:
        self.current_statement = normalized
        try:
            self.dispatcher.run(normalized)
            return True
        except Exception as e:
            self.report(e)
            return False
        finally:
            self.current_statement = None

    def _control(self, control: ShellControl) -> Optional[int]:
        if control.is_terminate:
            return control.exit_code
        self.out.write(CLEAR_SCREEN)
        self.out.flush()
        return None

    def _interrupted(self) -> None:
        if self.state.buffer:
            self.state.reset()
            print('^C (cleared buffer)', file=self.out)
        else:
            print('^C', file=self.out)

    def report(self, err: BaseException) -> None:
        logger.debug("Statement failed", exc_info=err)
        print(f"ERR {str(err) or type(err).__name__}", file=self.out)

    # --- dispatch targets ---

    def run_query(self, sql: str) -> None:
        start_t = time.time()
        result = self.database.execute(sql)
        self.last_result = result
        self.print_result(result)
        if self.settings.timing:
            print(f"Time: {(time.time() - start_t) * 1000:.1f} ms", file=self.out)

    def print_result(self, result: QueryResult) -> None:
        s = self.settings
        write_result(result, self.out, fmt=s.output_format, heading=s.heading, expanded=s.expanded,
                     display_limit=s.display_limit, max_col_width=s.max_col_width,
                     color=s.color and self.out.isatty())

    def run_nested(self, argv: Sequence[str]) -> int:
        depth = self.state.depth + 1
        max_depth = int(self.config.get('max_shell_depth', 8))
        if depth > max_depth:
            raise DispatchError(f"nested shell depth limit ({max_depth}) reached")
        child = Shell(self.database, self.source, out=self.out, history=self.history,
                      config=self.config, settings=self.settings,
                      state=ShellState(actor=self.state.actor, depth=depth), commands=self.commands)
        text = self._nested_text(argv)
        logger.debug("Entering nested shell depth=%d command=%r", depth, text)
        try:
            if text:
                return 0 if child.run_command(text) else 1
            return child.run()
        finally:
            if child.last_result is not None:
                self.last_result = child.last_result

    def _nested_text(self, argv: Sequence[str]) -> str:
        # re-read the raw statement; field splitting drops SQL quoting
        raw = self.current_statement or ''
        if raw.startswith(ESCAPE_PREFIX):
            return raw[len(ESCAPE_PREFIX):].strip()
        return ' '.join(argv[1:])

    def run_named(self, name: str, args: Sequence[str]) -> None:
        self.commands.invoke(self, name, args)


# --- Tab completion ---

def completion_candidates(line_buffer: str, text: str, shell: Optional[Shell] = None) -> List[str]:
    """Candidates for the token ``text`` given the whole input line."""
    stripped = line_buffer.lstrip()
    first_token = ' ' not in stripped.rstrip() and not stripped.endswith(' ')
    if first_token and stripped.startswith(ESCAPE_PREFIX):
        frag = text[len(ESCAPE_PREFIX):] if text.startswith(ESCAPE_PREFIX) else text
        return [ESCAPE_PREFIX + c for c in command_names() if c.startswith(frag.lower())]
    matches: List[str] = []
    up = text.upper()
    for kw in SQL_KEYWORDS:
        if kw.startswith(up) and kw not in matches:
            matches.append(kw)
    if first_token:
        matches.extend(c for c in command_names() if text and c.startswith(text.lower()))
    if shell is not None:
        prev_tokens = re.split(r'\s+', stripped)
        prev_word = prev_tokens[-2].upper() if len(prev_tokens) >= 2 else ''
        tables = [t for t in shell.database.table_names() if t.lower().startswith(text.lower())]
        if prev_word in {'FROM', 'JOIN', 'UPDATE', 'INTO', 'TABLE', 'DESC', 'DESCRIBE'}:
            matches = tables + [m for m in matches if m not in tables]
        else:
            matches.extend(t for t in tables if t not in matches)
    return matches


def _completer(text: str, state: int) -> Optional[str]:
    line_buffer = text
    if readline is not None:
        try:
            line_buffer = readline.get_line_buffer()
        except Exception:  # pragma: no cover
            line_buffer = text
    matches = completion_candidates(line_buffer or '', text, _GLOBAL_SHELL)
    return matches[state] if state < len(matches) else None


def _configure_readline() -> None:
    if readline is None:
        return
    try:
        readline.set_completer(_completer)
        readline.set_completer_delims(' \t\n,;()')
        # libedit (macOS default) needs a different binding than GNU readline
        docstr = getattr(readline, '__doc__', '') or ''
        if 'libedit' in docstr.lower():
            readline.parse_and_bind('bind ^I rl_complete')
        else:
            readline.parse_and_bind('tab: complete')
        readline.parse_and_bind('set completion-ignore-case on')
    except Exception as e:  # pragma: no cover
        logger.debug("readline setup failed: %s", e)


def start_shell(database: Database, config: Config, history: HistoryRecorder,
                command: Optional[str] = None, source: Optional[LineSource] = None,
                out: Optional[TextIO] = None) -> int:
    """Start the shell; with ``command`` run it once and return instead."""
    global _GLOBAL_SHELL
    interactive = command is None and source is None and sys.stdin.isatty()
    if source is None:
        source = ReadlineLineSource() if interactive or command is not None else ScriptedLineSource(sys.stdin)
    out = out or sys.stdout
    settings = SessionSettings.from_config(config, color=bool(config.get('color', True)) and out.isatty())
    shell = Shell(database, source, out=out, history=history, config=config, settings=settings)
    if command is not None:
        return 0 if shell.run_command(command) else 1
    if interactive:
        _GLOBAL_SHELL = shell
        _configure_readline()
        history.load()
    return shell.run()
