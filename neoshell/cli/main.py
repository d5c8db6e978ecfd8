"""CLI entry for neoshell with subcommands.

Subcommands:
  shell        Start the interactive shell (or run trailing ARGS once)
  run          Execute one statement and exit
  config       View or update configuration
  banner       Show the banner
"""
from __future__ import annotations
import argparse
import logging
import re
import shlex
import sys
from typing import List, Optional

from neoshell import __version__
from neoshell.cli.repl import start_shell, readline
from neoshell.core.errors import NeoShellException, ConfigError
from neoshell.core.history import HistoryRecorder, FileHistoryStore, MemoryHistoryStore
from neoshell.core.sql_engine import Database
from neoshell.utils.config import Config, coerce_value
from neoshell.utils.logging_setup import configure_logging, LOG_LEVELS

logger = logging.getLogger(__name__)

ASCII_BANNER = r"""
  _ __   ___  ___  ___| |__   ___| | |
 | '_ \ / _ \/ _ \/ __| '_ \ / _ \ | |
 | | | |  __/ (_) \__ \ | | |  __/ | |
 |_| |_|\___|\___/|___/_| |_|\___|_|_|

    SQL command shell on DuckDB
"""


# --- Helpers shared across subcommands ---

def _join_args(args: List[str]) -> str:
    """A single argument is the statement itself; several are re-quoted
    so the shell sees the same fields."""
    if len(args) == 1:
        return args[0].strip()
    return " ".join(shlex.quote(a) if re.search(r"\s", a) or not a else a for a in args).strip()


def _open_database(args: argparse.Namespace, config: Config) -> Database:
    path = args.db or config.get('database') or ':memory:'
    return Database(path, read_only=getattr(args, 'read_only', False))


def _history(args: argparse.Namespace, config: Config, interactive: bool) -> HistoryRecorder:
    path = config.history_path()
    if getattr(args, 'no_history', False) or not path or not interactive:
        return HistoryRecorder(MemoryHistoryStore(), out=sys.stdout)
    return HistoryRecorder(FileHistoryStore(path), out=sys.stdout, readline_module=readline)


# --- Subcommand handlers ---

def cmd_shell(args: argparse.Namespace, config: Config) -> int:
    command = _join_args(args.args) if args.args else None
    interactive = command is None and sys.stdin.isatty()
    if interactive and not args.no_banner:
        print(ASCII_BANNER)
    with _open_database(args, config) as db:
        return start_shell(db, config, _history(args, config, interactive), command=command)


def cmd_run(args: argparse.Namespace, config: Config) -> int:
    with _open_database(args, config) as db:
        return start_shell(db, config, _history(args, config, False), command=_join_args(args.statement))


def cmd_config(args: argparse.Namespace, config: Config) -> int:
    """Handle configuration commands."""
    if args.list:
        for key, value in config.settings.items():
            print(f"{key} = {value}")
    elif args.get:
        print(f"{args.get} = {config.get(args.get)}")
    elif args.set:
        if args.value is None:
            raise ConfigError("--set requires --value")
        value = coerce_value(args.value)
        config.set(args.set, value)
        config.save()
        print(f"Set {args.set} = {value}")
    else:
        print(f"Configuration file: {config.config_file}")
    return 0


def cmd_banner(_args: argparse.Namespace, _config: Config) -> int:
    print(ASCII_BANNER)
    return 0


# --- Parser construction ---

def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument('--config', help='Configuration file (default ~/.neoshell_config.json)')
    p.add_argument('--log-level', default='WARNING', choices=LOG_LEVELS)
    p.add_argument('--log-file', help='Also write logs to this file')


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='neoshell', description='SQL command shell on DuckDB')
    p.add_argument('--version', action='version', version=f'neoshell {__version__}')
    sub = p.add_subparsers(dest='command', required=True)

    # shell
    shell_p = sub.add_parser('shell', help='Start the interactive shell')
    shell_p.add_argument('args', nargs='*', help='Run this statement instead of prompting (use -- before words starting with -)')
    shell_p.add_argument('--db', help='Database file (default from config, else in-memory)')
    shell_p.add_argument('--read-only', action='store_true', help='Open the database read-only')
    shell_p.add_argument('--no-history', action='store_true', help='Do not read or write the history file')
    shell_p.add_argument('--no-banner', action='store_true', help='Suppress banner on start')
    _add_common(shell_p)

    # run
    run_p = sub.add_parser('run', help='Execute one statement and exit')
    run_p.add_argument('statement', nargs='+', help='Statement or command to execute')
    run_p.add_argument('--db', help='Database file (default from config, else in-memory)')
    run_p.add_argument('--read-only', action='store_true', help='Open the database read-only')
    _add_common(run_p)

    # config management
    config_p = sub.add_parser('config', help='View or update configuration')
    config_p.add_argument('--list', action='store_true', help='List all configuration values')
    config_p.add_argument('--get', metavar='KEY', help='Get specific configuration value')
    config_p.add_argument('--set', metavar='KEY', help='Set configuration value')
    config_p.add_argument('--value', help='Value to set (used with --set)')
    _add_common(config_p)

    # banner
    sub.add_parser('banner', help='Show banner')

    return p


HANDLERS = {
    'shell': cmd_shell,
    'run': cmd_run,
    'config': cmd_config,
    'banner': cmd_banner,
}

# --- Main entry ---

def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(getattr(args, 'log_level', 'WARNING'), getattr(args, 'log_file', None))
    config = Config(getattr(args, 'config', None))

    try:
        code = HANDLERS[args.command](args, config)
        sys.exit(code)
    except NeoShellException as e:
        logger.error("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Operation interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error("Unhandled error: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
