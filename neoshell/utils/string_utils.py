"""String helpers shared by the shell and the output writer."""
from __future__ import annotations
import re
import unicodedata

# Typographic quotes pasted from documents, mapped to their ASCII forms
SMART_QUOTE_MAP = {
    '\u201c': '"',  # left double
    '\u201d': '"',  # right double
    '\u201e': '"',
    '\u201f': '"',
    '\u2033': '"',
    '\u2018': "'",  # left single
    '\u2019': "'",  # right single / apostrophe
    '\u201b': "'",
    '\u2032': "'",
}

def normalize_smart_quotes(s: str) -> str:
    return ''.join(SMART_QUOTE_MAP.get(ch, ch) for ch in s)

def sanitize_identifier(name: str) -> str:
    """Convert a string to a valid SQL identifier."""
    if not name:
        return "unnamed"
    clean = re.sub(r'[^\w]', '_', name)
    if not clean[0].isalpha() and clean[0] != '_':
        clean = 't_' + clean
    return clean

def display_width(s: str) -> int:
    """Terminal column width; wide East Asian characters count as two."""
    w = 0
    for ch in s:
        if unicodedata.east_asian_width(ch) in ('F', 'W'):
            w += 2
        else:
            w += 1
    return w

def pad_right(s: str, width: int) -> str:
    extra = width - display_width(s)
    if extra > 0:
        return s + ' ' * extra
    return s

def truncate_cell(s: str, width: int) -> str:
    if len(s) <= width:
        return s
    if width <= 1:
        return '…'
    return s[: width - 1] + '…'

def plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"
