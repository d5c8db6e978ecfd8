"""Decide when the lines typed so far form a complete logical statement."""
from __future__ import annotations
from typing import Sequence
from neoshell.utils.constants import TERMINATOR, ESCAPE_PREFIX, EXIT_TOKENS


def should_submit(lines: Sequence[str], just_entered_index: int) -> bool:
    """Return True when the statement in ``lines`` is ready to run.

    ``exit``/``quit`` always submit. On the first line an empty entry or a
    backslash command submits on Enter without a terminator. Anything else
    keeps reading continuation lines until the line just entered ends with
    ``;``. The check is textual: a ``;`` inside a string literal or comment
    at the end of a line also submits.
    """
    joined = ''.join(lines).strip().lower()
    if joined in EXIT_TOKENS:
        return True
    if len(lines) == 1 and (joined == '' or joined.startswith(ESCAPE_PREFIX)):
        return True
    return lines[just_entered_index].endswith(TERMINATOR)
