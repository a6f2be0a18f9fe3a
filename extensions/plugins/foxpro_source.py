#!/usr/bin/env python3
"""
FoxPro ODBC Source Adapter

Reads schema metadata and table rows from the Visual FoxPro tables of a TMG
project through the ODBC catalog functions (SQLTables, SQLColumns,
SQLStatistics). pyodbc is imported only when a connection is opened, so the
rest of the engine works without an ODBC driver manager installed.

Catalog quirks of the legacy store:
- no primary keys, defaults or useful nullability are reported
- memo fields are character columns without a practical length limit
- integer columns report their 4-byte storage width as precision
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import pandas as pd

from core.errors import ConfigurationError
from core.introspector import RawColumn, RawIndex
from core.schema_ir import TableDescription
from core.type_registry import SemanticType, TypeRegistry, UNBOUNDED_TEXT_LENGTH

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = "Microsoft Visual FoxPro Driver"


def _lower(value: Optional[str]) -> Optional[str]:
    return value.strip().lower() if isinstance(value, str) else value


class FoxProSource:
    """Source schema and row source over a FoxPro ODBC connection"""

    def __init__(self, connection: Any, trim_spaces: bool = True):
        self.connection = connection
        self.trim_spaces = trim_spaces

    @classmethod
    def connect(cls, directory: Union[str, Path], driver: str = DEFAULT_DRIVER,
                trim_spaces: bool = True) -> 'FoxProSource':
        """Open a free-table-directory connection to the project's folder"""
        try:
            import pyodbc
        except ImportError as e:
            raise ConfigurationError("pyodbc not installed. Please install it: pip install pyodbc") from e

        connection_string = f"DRIVER={{{driver}}};SourceType=DBF;SourceDB={directory};Exclusive=No;"
        logger.info(f"Connecting to FoxPro tables in {directory}...")
        connection = pyodbc.connect(connection_string, autocommit=True)
        return cls(connection, trim_spaces=trim_spaces)

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # Source schema interface

    def list_tables(self, prefix: str = "") -> List[str]:
        cursor = self.connection.cursor()
        # Materialise before issuing anything else on the cursor
        names = [_lower(row.table_name) for row in cursor.tables(tableType="TABLE")]
        cursor.close()
        return sorted(n for n in names if n and n.startswith(prefix))

    def list_columns(self, table_name: str) -> List[RawColumn]:
        cursor = self.connection.cursor()
        rows = list(cursor.columns(table=table_name))
        cursor.close()
        if not rows:
            raise ConfigurationError(f"Couldn't get the columns for table {table_name}")
        return [self._raw_column(row) for row in rows]

    @staticmethod
    def _raw_column(row: Any) -> RawColumn:
        type_name = (row.type_name or "").strip()
        semantic = TypeRegistry.lookup(type_name)

        precision = scale = max_length = None
        if semantic == SemanticType.TEXT:
            max_length = UNBOUNDED_TEXT_LENGTH if type_name.lower() == "memo" else row.column_size
        elif semantic == SemanticType.INTEGER:
            precision = row.buffer_length
        elif semantic == SemanticType.NUMERIC:
            precision = row.column_size
            scale = row.decimal_digits

        return RawColumn(
            name=_lower(row.column_name),
            raw_type=type_name,
            ordinal_position=int(row.ordinal_position),
            numeric_precision=precision,
            numeric_scale=scale,
            max_length=max_length,
        )

    def list_indexes(self) -> List[RawIndex]:
        indexes = []
        for table_name in self.list_tables():
            cursor = self.connection.cursor()
            rows = list(cursor.statistics(table=table_name))
            cursor.close()

            for row in rows:
                # Table statistics rows carry no index
                if not row.index_name:
                    continue
                column = _lower(row.column_name)
                indexes.append(RawIndex(
                    table_name=table_name,
                    index_name=_lower(row.index_name),
                    expression=column,
                    column_name=column,
                ))
        return indexes

    # Row source interface

    def fetch_rows(self, table: TableDescription) -> pd.DataFrame:
        logger.info(f"Getting the {table.output_table_name} data...")

        frame = pd.read_sql_query(self.build_select(table), self.connection)
        if self.trim_spaces:
            frame = trim_string_columns(frame)

        logger.info(f"Finished getting the {table.output_table_name} data.")
        return frame

    @staticmethod
    def build_select(table: TableDescription) -> str:
        columns = ",".join(FoxProSource._select_column(table, c.name) for c in table.ordered_columns())
        return f"SELECT {columns} FROM {table.input_table_name}"

    @staticmethod
    def _select_column(table: TableDescription, column_name: str) -> str:
        override = table.type_override(column_name)
        if override is None:
            return column_name
        if override == SemanticType.BINARY:
            return f"CAST({column_name} as Blob) as {column_name}"
        raise ConfigurationError(f"Unsupported type override {override.value} for column {column_name}")


def trim_string_columns(frame: pd.DataFrame) -> pd.DataFrame:
    """FoxPro pads character fields to their declared width"""
    frame = frame.copy()
    for column in frame.columns:
        if is_text_series(frame[column]):
            frame[column] = frame[column].map(lambda v: v.strip() if isinstance(v, str) else v)
    return frame


def is_text_series(series: pd.Series) -> bool:
    """Object columns, and the dedicated string dtype newer pandas infers for text"""
    return pd.api.types.is_object_dtype(series) or pd.api.types.is_string_dtype(series)
