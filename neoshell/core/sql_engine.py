"""DuckDB-backed statement executor."""
from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Any
import logging
import os
import duckdb
import pandas as pd
from neoshell.core.errors import QueryError, UserInputError
from neoshell.utils.string_utils import plural

logger = logging.getLogger(__name__)

_DML_PAST = {'INSERT': 'inserted', 'UPDATE': 'updated', 'DELETE': 'deleted'}
# Statements whose only output is DuckDB's Count placeholder
_NO_RESULT_VERBS = frozenset([
    'CREATE', 'DROP', 'ALTER', 'GRANT', 'REVOKE', 'COMMIT', 'ROLLBACK', 'SAVEPOINT',
    'BEGIN', 'SET', 'RESET', 'USE', 'ATTACH', 'DETACH', 'INSTALL', 'LOAD', 'CHECKPOINT',
])
_IMPORT_READERS = {
    '.csv': 'read_csv_auto',
    '.tsv': 'read_csv_auto',
    '.txt': 'read_csv_auto',
    '.json': 'read_json_auto',
    '.jsonl': 'read_json_auto',
    '.ndjson': 'read_json_auto',
    '.parquet': 'read_parquet',
}


@dataclass
class QueryResult:
    """Result of one statement: column metadata, rows and a status line."""
    columns: List[str]
    types: List[str]
    frame: pd.DataFrame = field(default_factory=pd.DataFrame)
    message: str = ''
    fetchable: bool = True

    def rows(self) -> Iterator[Tuple[Any, ...]]:
        return self.frame.itertuples(index=False, name=None)

    def __len__(self) -> int:
        return len(self.frame.index)


def quote_identifier(name: str) -> str:
    """Quote a (possibly schema-qualified) identifier."""
    parts = [p for p in name.split('.') if p]
    if not parts:
        raise UserInputError(f"invalid identifier: {name!r}")
    return '.'.join('"' + p.replace('"', '""') + '"' for p in parts)


def sql_literal(value: Optional[str]) -> str:
    if value is None:
        return 'NULL'
    return "'" + value.replace("'", "''") + "'"


def _verb(sql: str) -> str:
    return sql.lstrip().split(None, 1)[0].upper() if sql.strip() else ''


def _status_message(sql: str, frame: pd.DataFrame) -> str:
    verb = _verb(sql)
    if verb in _DML_PAST and list(frame.columns) == ['Count'] and len(frame.index) == 1:
        return f"{plural(int(frame.iloc[0, 0]), 'row')} {_DML_PAST[verb]}."
    return f"{plural(len(frame.index), 'row')} selected."


class Database:
    """A DuckDB database opened once per process.

    Each statement runs on its own cursor, acquired through ``connect()`` and
    closed on every exit path.
    """

    def __init__(self, path: str = ':memory:', read_only: bool = False):
        self.path = path
        self.read_only = read_only
        target = path if path == ':memory:' else os.path.expanduser(path)
        try:
            self.con: Optional[duckdb.DuckDBPyConnection] = duckdb.connect(database=target, read_only=read_only)
        except duckdb.Error as e:
            raise QueryError(f"cannot open database {path}: {e}") from e
        logger.debug("Opened database %s (read_only=%s)", path, read_only)

    def close(self) -> None:
        if self.con is not None:
            self.con.close()
            self.con = None

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @contextmanager
    def connect(self) -> Iterator[duckdb.DuckDBPyConnection]:
        if self.con is None:
            raise QueryError("database is closed")
        cur = self.con.cursor()
        try:
            yield cur
        finally:
            cur.close()

    def execute(self, sql: str) -> QueryResult:
        logger.debug("Executing SQL: %s", sql)
        with self.connect() as cur:
            try:
                cur.execute(sql)
                if cur.description is None:
                    return QueryResult([], [], message='executed.', fetchable=False)
                columns = [d[0] for d in cur.description]
                types = [str(d[1]) for d in cur.description]
                frame = cur.fetchdf()
            except duckdb.Error as e:
                raise QueryError(str(e)) from e
        if _verb(sql) in _NO_RESULT_VERBS and columns == ['Count']:
            return QueryResult([], [], message='executed.', fetchable=False)
        return QueryResult(columns, types, frame, _status_message(sql, frame))

    def list_tables(self) -> QueryResult:
        return self.execute(
            "SELECT table_schema AS schema, table_name AS name, table_type AS type "
            "FROM information_schema.tables ORDER BY 1, 2"
        )

    def table_names(self) -> List[str]:
        try:
            return [str(n) for n in self.list_tables().frame['name'].tolist()]
        except QueryError:
            return []

    def describe(self, table: str) -> QueryResult:
        return self.execute(f"DESCRIBE {quote_identifier(table)}")

    def explain(self, sql: str) -> str:
        result = self.execute(f"EXPLAIN {sql}")
        if 'explain_value' in result.frame.columns:
            return '\n'.join(str(v) for v in result.frame['explain_value'].tolist())
        return result.frame.to_string(index=False)

    def import_file(self, table: str, path: str) -> int:
        """Create ``table`` from a CSV/JSON/Parquet file; returns the row count."""
        ext = os.path.splitext(path)[1].lower()
        reader = _IMPORT_READERS.get(ext)
        if reader is None:
            raise UserInputError(f"unsupported import file type: {ext or path}")
        if not os.path.exists(path):
            raise UserInputError(f"file not found: {path}")
        ident = quote_identifier(table)
        self.execute(f"CREATE TABLE {ident} AS SELECT * FROM {reader}({sql_literal(path)})")
        count = self.execute(f"SELECT count(*) AS n FROM {ident}")
        return int(count.frame.iloc[0, 0])
