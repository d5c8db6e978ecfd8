"""Persistent input history.

Entries are the statements exactly as the operator typed them (terminator,
casing and line breaks intact). The file store writes one JSON string per
line so multi-line statements survive a reload.
"""
from __future__ import annotations
from typing import List, Optional, TextIO, Any
import json
import logging
import os
from neoshell.core.errors import HistoryError

logger = logging.getLogger(__name__)


class MemoryHistoryStore:
    """In-process history, used with --no-history and in tests."""

    def __init__(self):
        self._entries: List[str] = []

    def append(self, line: str) -> None:
        self._entries.append(line)

    def load(self) -> List[str]:
        return list(self._entries)


class FileHistoryStore:
    """Append-only history file."""

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def append(self, line: str) -> None:
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(line, ensure_ascii=False) + '\n')

    def load(self) -> List[str]:
        if not os.path.exists(self.path):
            return []
        entries: List[str] = []
        with open(self.path, 'r', encoding='utf-8') as f:
            for raw in f:
                raw = raw.rstrip('\n')
                if not raw:
                    continue
                try:
                    value = json.loads(raw)
                except ValueError:
                    # plain-text line written by another tool
                    value = raw
                entries.append(value if isinstance(value, str) else str(value))
        return entries


class HistoryRecorder:
    """Record accepted statements; failures never stop the shell."""

    def __init__(self, store: Any, out: Optional[TextIO] = None, readline_module: Any = None):
        self.store = store
        self.out = out
        self.readline = readline_module
        self._entries: List[str] = []

    def load(self) -> int:
        """Load stored entries (and feed them to readline); returns the count."""
        try:
            self._entries = self.store.load()
        except (OSError, ValueError) as e:
            self._report(HistoryError(f"cannot load history: {e}"))
            self._entries = []
            return 0
        if self.readline is not None:
            for entry in self._entries:
                self.readline.add_history(entry)
        return len(self._entries)

    def record(self, original_line: str) -> bool:
        """Append ``original_line``; returns False when the store failed."""
        self._entries.append(original_line)
        try:
            if self.readline is not None:
                self.readline.add_history(original_line)
            self.store.append(original_line)
        except Exception as e:
            self._report(HistoryError(str(e)))
            return False
        return True

    def entries(self, n: Optional[int] = None) -> List[str]:
        if n is None:
            return list(self._entries)
        if n <= 0:
            return []
        return self._entries[-n:]

    def _report(self, err: HistoryError) -> None:
        logger.debug("History: %s", err)
        if self.out is not None:
            print(f"History: {err}", file=self.out)
