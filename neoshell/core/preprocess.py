"""Normalize a submitted statement and intercept shell meta commands."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Union
import re
from neoshell.utils.constants import EXIT_TOKENS, CLEAR_TOKEN

_TRAILING_TERMINATORS = re.compile(r'[;\s]+$')


@dataclass(frozen=True)
class Statement:
    """A statement ready for classification.

    ``normalized`` is trimmed with trailing terminators removed; ``original``
    is the text as submitted, kept for the history.
    """
    normalized: str
    original: str


@dataclass(frozen=True)
class ShellControl:
    """Shell-level action that replaces dispatch for this statement."""
    action: str
    exit_code: int = 0

    TERMINATE = 'terminate'
    CLEAR = 'clear'

    @classmethod
    def terminate(cls, exit_code: int = 0) -> "ShellControl":
        return cls(cls.TERMINATE, exit_code)

    @classmethod
    def clear(cls) -> "ShellControl":
        return cls(cls.CLEAR)

    @property
    def is_terminate(self) -> bool:
        return self.action == self.TERMINATE


def normalize(raw: str) -> str:
    return _TRAILING_TERMINATORS.sub('', raw.strip()).strip()


def preprocess(raw: str) -> Union[Statement, ShellControl]:
    text = normalize(raw)
    lowered = text.lower()
    if lowered in EXIT_TOKENS:
        return ShellControl.terminate(0)
    if lowered == CLEAR_TOKEN:
        return ShellControl.clear()
    return Statement(normalized=text, original=raw)
