#!/usr/bin/env python3
"""
TMG Transactional Writer
========================

Applies generated DDL and per-table inserts to a live DB-API connection.

- Schema creation runs in a single transaction: all tables and indexes or nothing.
- Each table's rows are written in their own transaction. A row whose insert
  affects a count other than one is logged and skipped over; a statement that
  raises rolls the whole table back and the error propagates.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Union

import pandas as pd

from core.errors import RowInsertMismatch, StatementExecutionError
from core.schema_ir import TableDescription
from core.sql_builder import InsertStatement, SqlBuilder

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 500

Rows = Union[pd.DataFrame, Iterable[Sequence[Any]]]


@dataclass
class WriteResult:
    """Outcome of writing one table"""
    table: str
    rows: int = 0
    inserted: int = 0
    mismatched: int = 0

    @property
    def success(self) -> bool:
        return self.mismatched == 0


class DatabaseWriter:
    """Owns one target connection and writes resolved tables into it"""

    def __init__(self, connection_factory: Callable[[], Any], builder: SqlBuilder, name: Optional[str] = None):
        self._connection_factory = connection_factory
        self.builder = builder
        self.name = name or builder.dialect.name
        self._conn = None

    @property
    def connection(self):
        if self._conn is None:
            raise StatementExecutionError(f"Target {self.name} is not open")
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> 'DatabaseWriter':
        if self._conn is None:
            self._conn = self._connection_factory()
            logger.info(f"Opened {self.name} target")
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info(f"Closed {self.name} target")

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Cursor inside a transaction; commit on success, rollback on any error"""
        conn = self.connection
        cursor = conn.cursor()
        try:
            begin = self.builder.dialect.begin_statement
            if begin:
                cursor.execute(begin)
            yield cursor
            conn.commit()
        except BaseException:
            try:
                conn.rollback()
            except Exception as rollback_error:
                logger.critical(f"Rollback failed on {self.name}: {rollback_error}")
            raise
        finally:
            cursor.close()

    def _execute(self, cursor, sql: str, params: Optional[dict] = None) -> int:
        try:
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, params)
        except Exception as e:
            logger.error(f"{self.name}: {e}")
            raise StatementExecutionError(str(e), sql=sql, details={'target': self.name}) from e
        return cursor.rowcount

    def generate_schema_script(self, tables: Iterable[TableDescription]) -> str:
        """DDL for `tables` without touching the connection"""
        return self.builder.build_schema_script(tables)

    def create_schema(self, tables: Iterable[TableDescription]) -> None:
        logger.debug("Entering create_schema...")
        with self.transaction() as cursor:
            for table in tables:
                logger.info(f"Creating {table.output_table_name} table...")
                self._execute(cursor, self.builder.build_create_table(table))

                for index in table.indexes:
                    logger.debug(f"Creating {index.name} index for table {table.output_table_name}...")
                    self._execute(cursor, self.builder.build_create_index(table, index))
        logger.debug("Leaving create_schema...")

    def write_rows(self, table: TableDescription, rows: Rows,
                   insert: Optional[InsertStatement] = None) -> WriteResult:
        name = table.output_table_name
        insert = insert or self.builder.build_insert(table)
        records, total = _as_records(table, rows)
        result = WriteResult(table=name, rows=total)

        logger.info(f"Inserting the {name} data...")
        with self.transaction() as cursor:
            for row_number, row in enumerate(records, start=1):
                if row_number % PROGRESS_INTERVAL == 0:
                    logger.info(f"Processing {name}: {row_number} of {total}...")
                else:
                    logger.debug(f"Processing {name}: {row_number} of {total}...")

                affected = self._execute(cursor, insert.sql, insert.bind(row))
                if affected != 1:
                    mismatch = RowInsertMismatch(name, row_number, affected)
                    logger.error(mismatch.message)
                    result.mismatched += 1
                else:
                    result.inserted += 1

        logger.info(f"Finished inserting the {name} data.")
        return result


def _as_records(table: TableDescription, rows: Rows):
    """Positional records in resolved column order, plus the row count"""
    if isinstance(rows, pd.DataFrame):
        columns: List[str] = table.column_names()
        missing = [c for c in columns if c not in rows.columns]
        if missing:
            raise StatementExecutionError(
                f"Rows for {table.output_table_name} are missing columns: {', '.join(missing)}",
                details={'target_table': table.output_table_name, 'missing_columns': missing})
        frame = rows[columns]
        return frame.itertuples(index=False, name=None), len(frame)

    rows = list(rows)
    return iter(rows), len(rows)
