"""Named shell commands.

A named command is any statement whose first field is not a query verb,
either escaped (``\\show tables``) or terminated (``show tables;``). Built-in
commands are looked up first; other names run as external executables found
on ``PATH``.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING
import json
import logging
import os
import shutil
import subprocess
import duckdb
import pandas as pd
from neoshell.core.errors import DispatchError, UserInputError
from neoshell.utils.config import coerce_value
from neoshell.utils.constants import SUPPORTED_EXPORT_FORMATS
from neoshell.utils.output_writer import export_frame
from neoshell.utils.string_utils import sanitize_identifier

if TYPE_CHECKING:  # pragma: no cover
    from neoshell.cli.repl import Shell

logger = logging.getLogger(__name__)

Handler = Callable[["Shell", List[str]], None]


@dataclass
class Command:
    name: str
    handler: Handler
    usage: str = ''
    desc: str = ''
    aliases: Tuple[str, ...] = field(default_factory=tuple)


COMMANDS: Dict[str, Command] = {}


def register(name: str, usage: str = '', desc: str = '', aliases: Sequence[str] = ()):
    def deco(fn: Handler) -> Handler:
        cmd = Command(name, fn, usage or name, desc, tuple(aliases))
        COMMANDS[name] = cmd
        for alias in aliases:
            COMMANDS[alias] = cmd
        return fn
    return deco


def command_names() -> List[str]:
    return sorted(COMMANDS)


class CommandInvoker:
    """Resolve a command name to a built-in or an external executable."""

    def __init__(self, registry: Optional[Dict[str, Command]] = None, allow_external: bool = True,
                 runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
                 which: Callable[[str], Optional[str]] = shutil.which):
        self.registry = COMMANDS if registry is None else registry
        self.allow_external = allow_external
        self.runner = runner
        self.which = which

    def invoke(self, shell: "Shell", name: str, args: Sequence[str]) -> None:
        cmd = self.registry.get(name.lower())
        if cmd is not None:
            cmd.handler(shell, list(args))
            return
        self.run_external(shell, name, args)

    def run_external(self, shell: "Shell", name: str, args: Sequence[str]) -> None:
        exe = self.which(name) if self.allow_external else None
        if exe is None:
            raise DispatchError(f"{name}: command not found")
        logger.debug("Running external command %s %s", exe, list(args))
        shell.out.flush()
        try:
            proc = self.runner([exe, *args], check=False)
        except OSError as e:
            raise DispatchError(f"{name}: {e}") from e
        if proc.returncode != 0:
            raise DispatchError(f"{name}: exit status {proc.returncode}")


# --- Built-in commands ---

@register('help', usage='help [command]', desc='List commands or show usage of one command', aliases=('?',))
def cmd_help(shell: "Shell", args: List[str]) -> None:
    out = shell.out
    if args:
        cmd = COMMANDS.get(args[0].lstrip('\\').lower())
        if cmd is None:
            raise UserInputError(f"unknown command: {args[0]}")
        print(f"  {cmd.usage}\n    {cmd.desc}", file=out)
        return
    print("SQL statements starting with a query verb run on the database; end them with ';'.", file=out)
    print("Commands run as '\\name args' (Enter submits) or 'name args;'.", file=out)
    seen = set()
    for name in command_names():
        cmd = COMMANDS[name]
        if cmd.name in seen:
            continue
        seen.add(cmd.name)
        print(f"  {cmd.usage:<28} {cmd.desc}", file=out)
    print("  \\ [command]                  Start a nested shell (or run one command in it)", file=out)
    print("  clear / exit / quit          Clear the screen / leave the shell", file=out)


@register('show', usage='show tables|settings|version', desc='Show tables, session settings or versions')
def cmd_show(shell: "Shell", args: List[str]) -> None:
    what = args[0].lower() if args else 'tables'
    if what == 'tables':
        shell.print_result(shell.database.list_tables())
    elif what == 'settings':
        print(json.dumps(shell.settings.as_dict(), indent=2), file=shell.out)
    elif what == 'version':
        from neoshell import __version__
        print(f"neoshell {__version__} | DuckDB {duckdb.__version__} | pandas {pd.__version__}", file=shell.out)
    else:
        raise UserInputError("Usage: show tables|settings|version")


@register('desc', usage='desc <table>', desc='Describe table columns', aliases=('describe', 'd'))
def cmd_desc(shell: "Shell", args: List[str]) -> None:
    if len(args) != 1:
        raise UserInputError("Usage: desc <table>")
    shell.print_result(shell.database.describe(args[0]))


@register('explain', usage='explain <sql>', desc='Show the execution plan of a query')
def cmd_explain(shell: "Shell", args: List[str]) -> None:
    if not args:
        raise UserInputError("Usage: explain <sql>")
    # re-split the raw statement; field splitting drops SQL quoting
    parts = (shell.current_statement or '').split(None, 1)
    sql = parts[1] if len(parts) == 2 else ' '.join(args)
    print(shell.database.explain(sql), file=shell.out)


@register('set', usage='set [key [value]]', desc='Show or change session settings')
def cmd_set(shell: "Shell", args: List[str]) -> None:
    settings = shell.settings
    if not args:
        for key, value in settings.as_dict().items():
            print(f"{key} = {value}", file=shell.out)
        return
    key = args[0].lower()
    if len(args) == 1:
        print(f"{key} = {settings.get(key)}", file=shell.out)
        return
    settings.update(key, coerce_value(' '.join(args[1:])))
    print(f"{key} = {settings.get(key)}", file=shell.out)


@register('history', usage='history [n]', desc='Show the last n statements (default 20)')
def cmd_history(shell: "Shell", args: List[str]) -> None:
    try:
        n = int(args[0]) if args else 20
    except ValueError:
        raise UserInputError("Usage: history [n]")
    entries = shell.history.entries(n)
    start = len(shell.history.entries()) - len(entries) + 1
    for idx, line in enumerate(entries, start=start):
        print(f"{idx:>5}  {line}", file=shell.out)


@register('export', usage='export <fmt> <path>', desc='Export the last query result (csv|json|jsonl|xlsx)')
def cmd_export(shell: "Shell", args: List[str]) -> None:
    if len(args) != 2:
        raise UserInputError("Usage: export <fmt> <path>")
    fmt, path = args[0].lower(), args[1]
    if fmt not in SUPPORTED_EXPORT_FORMATS:
        raise UserInputError(f"Unsupported format: {fmt} (choose from {', '.join(SUPPORTED_EXPORT_FORMATS)})")
    result = shell.last_result
    if result is None or not result.fetchable:
        raise UserInputError("No result to export (run a query first)")
    written = export_frame(result.frame, fmt, path)
    print(f"Exported {len(result)} rows to {written}", file=shell.out)


@register('import', usage='import <file> [table]', desc='Create a table from a CSV, JSON or Parquet file')
def cmd_import(shell: "Shell", args: List[str]) -> None:
    if not 1 <= len(args) <= 2:
        raise UserInputError("Usage: import <file> [table]")
    path = os.path.expanduser(args[0])
    table = args[1] if len(args) == 2 else sanitize_identifier(os.path.splitext(os.path.basename(path))[0])
    count = shell.database.import_file(table, path)
    print(f"Imported {count} rows into {table}", file=shell.out)

