"""Statement classification and dispatch to the SQL engine, a nested shell
or a named command.

Routing rules, applied to the first whitespace-delimited field:

* a query verb (``SELECT``, ``INSERT``, ... compared case-insensitively)
  sends the whole statement to the SQL engine;
* a lone backslash starts a nested shell with every field as its argv;
* ``\\name`` runs command ``name`` with the remaining fields;
* anything else runs the first field as a command name.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Tuple, Union
import logging
import shlex
from neoshell.core.errors import ClassificationError, DispatchError, NeoShellException
from neoshell.utils.constants import QUERY_VERBS, ESCAPE_PREFIX
from neoshell.utils.string_utils import normalize_smart_quotes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryTarget:
    statement: str


@dataclass(frozen=True)
class NestedShellTarget:
    argv: Tuple[str, ...]


@dataclass(frozen=True)
class NamedCommandTarget:
    name: str
    args: Tuple[str, ...] = field(default_factory=tuple)


DispatchTarget = Union[QueryTarget, NestedShellTarget, NamedCommandTarget]


def split_fields(text: str) -> List[str]:
    """Split ``text`` into shell-style fields.

    Quotes group words; backslash is an ordinary character so a leading
    ``\\`` survives as part of its field.
    """
    lexer = shlex.shlex(normalize_smart_quotes(text), posix=True)
    lexer.whitespace_split = True
    lexer.escape = ''
    lexer.commenters = ''
    try:
        return list(lexer)
    except ValueError as e:
        raise ClassificationError(f"cannot split statement: {e}") from e


def classify(normalized: str) -> DispatchTarget:
    fields = split_fields(normalized)
    if not fields:
        raise ClassificationError("empty statement")
    first, rest = fields[0], tuple(fields[1:])
    if first.upper() in QUERY_VERBS:
        return QueryTarget(statement=normalized)
    if first == ESCAPE_PREFIX:
        return NestedShellTarget(argv=tuple(fields))
    if first.startswith(ESCAPE_PREFIX):
        return NamedCommandTarget(name=first[len(ESCAPE_PREFIX):], args=rest)
    return NamedCommandTarget(name=first, args=rest)


QueryExecutor = Callable[[str], None]
NestedShellExecutor = Callable[[Sequence[str]], int]
CommandExecutor = Callable[[str, Sequence[str]], None]


class Dispatcher:
    """Invoke exactly one executor per classified statement."""

    def __init__(self, query: QueryExecutor, nested_shell: NestedShellExecutor,
                 command: CommandExecutor):
        self.query = query
        self.nested_shell = nested_shell
        self.command = command

    def dispatch(self, target: DispatchTarget) -> None:
        logger.debug("Dispatching %r", target)
        label = 'sql'
        try:
            if isinstance(target, QueryTarget):
                self.query(target.statement)
            elif isinstance(target, NestedShellTarget):
                label = 'shell'
                self.nested_shell(list(target.argv))
            elif isinstance(target, NamedCommandTarget):
                label = target.name
                self.command(target.name, list(target.args))
            else:
                raise DispatchError(f"unsupported dispatch target: {target!r}")
        except NeoShellException:
            raise
        except Exception as e:
            raise DispatchError(f"{label}: {e}") from e

    def run(self, normalized: str) -> DispatchTarget:
        """Classify ``normalized`` and dispatch it; returns the chosen target."""
        target = classify(normalized)
        self.dispatch(target)
        return target
