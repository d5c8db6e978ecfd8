"""Render query results to the shell output and export them to files."""
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Optional, TextIO, List
import pandas as pd
from neoshell.core.sql_engine import QueryResult
from neoshell.utils.string_utils import display_width, pad_right, truncate_cell, plural

logger = logging.getLogger(__name__)


def _cell(val) -> str:
    try:
        if pd.isna(val):
            return ''
    except (TypeError, ValueError):
        # array-like cells (LIST/STRUCT columns)
        pass
    return str(val)


def _colorize(text: str, code: str, color: bool) -> str:
    return f"\033[{code}m{text}\033[0m" if color else text


def write_result(result: QueryResult, out: TextIO, fmt: str = 'table', heading: bool = True,
                 expanded: bool = False, display_limit: Optional[int] = None,
                 max_col_width: int = 50, color: bool = False) -> None:
    """Write ``result`` to ``out`` in the requested format."""
    if not result.fetchable:
        print(result.message, file=out)
        return
    df = result.frame
    if display_limit is not None and display_limit >= 0:
        df = df.head(display_limit)
    if fmt == 'table':
        if expanded:
            _print_expanded(df, out, max_col_width, color)
        else:
            _print_table(df, out, heading, max_col_width, color)
        print(f"({plural(len(df), 'row')})", file=out)
        if len(df) < len(result):
            print(f"... {len(result) - len(df)} more not shown (display_limit={display_limit})", file=out)
        print(result.message, file=out)
    elif fmt == 'csv':
        out.write(df.to_csv(index=False, header=heading))
    elif fmt == 'json':
        print(df.to_json(orient='records', indent=2, force_ascii=False, date_format='iso'), file=out)
    elif fmt == 'jsonl':
        for rec in json.loads(df.to_json(orient='records', force_ascii=False, date_format='iso')):
            print(json.dumps(rec, ensure_ascii=False), file=out)
    else:
        raise ValueError(f"Unsupported output format: {fmt}")


def _print_table(df: pd.DataFrame, out: TextIO, heading: bool, max_col_width: int, color: bool) -> None:
    display_cols = [str(c) for c in df.columns]
    if not display_cols:
        return
    cells: List[List[str]] = [[_cell(v) for v in row] for row in df.itertuples(index=False, name=None)]
    widths = []
    for i, name in enumerate(display_cols):
        candidates = [display_width(name)] if heading else [0]
        candidates.extend(display_width(r[i]) for r in cells)
        widths.append(max(1, min(max(candidates), max_col_width)))
    if heading:
        header = ' | '.join(_colorize(pad_right(truncate_cell(n, w), w), '32', color)
                            for n, w in zip(display_cols, widths))
        print(header, file=out)
        print('-+-'.join('-' * w for w in widths), file=out)
    for row in cells:
        print(' | '.join(pad_right(truncate_cell(v, w), w) for v, w in zip(row, widths)), file=out)


def _print_expanded(df: pd.DataFrame, out: TextIO, max_col_width: int, color: bool) -> None:
    for rec_no, row in enumerate(df.itertuples(index=False, name=None), start=1):
        print(_colorize(f"-[ RECORD {rec_no} ]-", '36', color), file=out)
        for col, val in zip(df.columns, row):
            print(f"{_colorize(str(col), '33', color)}: {truncate_cell(_cell(val), max_col_width)}", file=out)
        print(file=out)


def export_frame(df: pd.DataFrame, fmt: str, output_path: str) -> Path:
    """Write ``df`` to ``output_path``; xlsx goes through openpyxl."""
    path = Path(output_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    fmt = fmt.lower()
    if fmt == 'csv':
        df.to_csv(path, index=False, encoding='utf-8')
    elif fmt == 'json':
        df.to_json(path, orient='records', indent=2, force_ascii=False, date_format='iso')
    elif fmt == 'jsonl':
        df.to_json(path, orient='records', lines=True, force_ascii=False, date_format='iso')
    elif fmt in ('xlsx', 'excel'):
        df.to_excel(path, index=False, engine='openpyxl')
    else:
        raise ValueError(f"Unsupported export format: {fmt}")
    logger.info("Exported %d rows to %s", len(df), path)
    return path
