#!/usr/bin/env python3
"""
TMG SQL Dialect Generator
=========================

Emits CREATE TABLE, CREATE INDEX and parameterized INSERT statements for a
resolved table description. One generator serves every target; targets differ
only by their DialectConfig (identifier escaping, literal type names and the
parameter placeholder format).
"""

import decimal
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from core.errors import ConfigurationError, UnsupportedTypeError
from core.schema_ir import Column, Index, TableDescription
from core.type_registry import INTEGER_PRECISION, SemanticType

logger = logging.getLogger(__name__)

PRIMARY_KEY_SUFFIX = " PRIMARY KEY NOT NULL"
NUMERIC_TYPE = "NUMERIC"


def bracket_escape(identifier: str) -> str:
    return f"[{identifier}]"


def backtick_escape(identifier: str) -> str:
    return f"`{identifier}`"


def double_quote_escape(identifier: str) -> str:
    return f'"{identifier}"'


@dataclass(frozen=True)
class DialectConfig:
    """Everything that distinguishes one target engine's SQL from another's"""
    name: str
    escape: Callable[[str], str]
    datetime_type: str
    blob_type: str
    integer_type: str
    boolean_type: str
    text_type: str = "TEXT"
    parameter_format: str = "@{name}"
    # Drivers running in autocommit mode need the transaction opened explicitly
    begin_statement: Optional[str] = None

    def parameter_name(self, column_name: str) -> str:
        return self.parameter_format.format(name=column_name)


SQLITE = DialectConfig("sqlite", bracket_escape, "DATETIME", "BLOB", "INTEGER", "BOOLEAN",
                       begin_statement="BEGIN")
MYSQL = DialectConfig("mysql", backtick_escape, "DATETIME", "BLOB", "INTEGER", "BOOLEAN",
                      parameter_format="%({name})s")
POSTGRESQL = DialectConfig("postgresql", double_quote_escape, "timestamp", "bytea", "integer", "boolean",
                           parameter_format="%({name})s")
SQLSERVER = DialectConfig("sqlserver", bracket_escape, "Datetime", "Varbinary(max)", "Int", "bit",
                          text_type="Varchar(max)", parameter_format="%({name})s")

DIALECTS: Dict[str, DialectConfig] = {
    'sqlite': SQLITE,
    'mysql': MYSQL,
    'mariadb': MYSQL,
    'postgresql': POSTGRESQL,
    'postgres': POSTGRESQL,
    'sqlserver': SQLSERVER,
    'mssql': SQLSERVER,
}


def get_dialect(name: str) -> DialectConfig:
    dialect = DIALECTS.get(name.lower().strip())
    if dialect is None:
        raise ConfigurationError(f"Unknown SQL dialect: {name}", details={'dialect': name})
    return dialect


class ParamType(Enum):
    STRING = "String"
    STRING_FIXED_LENGTH = "StringFixedLength"
    INT32 = "Int32"
    BOOLEAN = "Boolean"
    BINARY = "Binary"
    DATETIME = "DateTime"


@dataclass(frozen=True)
class ParameterBinding:
    """Typed parameter for one insert column"""
    name: str
    column: str
    param_type: ParamType
    size: Optional[int] = None

    def coerce(self, value: Any) -> Any:
        """Normalise a rowset cell into a plain Python value the DB-API drivers accept"""
        if value is None or value is pd.NaT:
            return None
        if pd.api.types.is_scalar(value) and not isinstance(value, (bytes, bytearray, memoryview)) and pd.isna(value):
            return None
        if isinstance(value, np.generic):
            value = value.item()

        if self.param_type == ParamType.DATETIME:
            if isinstance(value, pd.Timestamp):
                return value.to_pydatetime()
            return value
        if self.param_type == ParamType.BOOLEAN:
            return bool(value)
        if self.param_type == ParamType.INT32:
            if isinstance(value, decimal.Decimal):
                return int(value) if value == value.to_integral_value() else float(value)
            if isinstance(value, float) and value.is_integer():
                return int(value)
            return value
        if self.param_type == ParamType.BINARY:
            if isinstance(value, (bytearray, memoryview)):
                return bytes(value)
            return value
        return value


@dataclass
class InsertStatement:
    """Parameterized INSERT with one binding per column, in ordinal order"""
    sql: str
    bindings: List[ParameterBinding] = field(default_factory=list)

    @property
    def parameter_names(self) -> List[str]:
        return [b.name for b in self.bindings]

    def bind(self, row: Sequence[Any]) -> Dict[str, Any]:
        """Bind a positional row (resolved column order) to named parameters"""
        if len(row) != len(self.bindings):
            raise ValueError(f"Row has {len(row)} values, statement expects {len(self.bindings)}")
        return {b.column: b.coerce(v) for b, v in zip(self.bindings, row)}


class SqlBuilder:
    """Generates dialect-correct DDL and DML for resolved tables"""

    def __init__(self, dialect: DialectConfig):
        self.dialect = dialect

    @property
    def escape(self) -> Callable[[str], str]:
        return self.dialect.escape

    def build_create_table(self, table: TableDescription) -> str:
        column_sql = ",".join(self._column_definition(c) for c in table.ordered_columns())
        return f"CREATE TABLE {self.escape(table.output_table_name)} ({column_sql});"

    def _column_definition(self, column: Column) -> str:
        return f"{self.escape(column.name)} {self.column_type(column)}"

    def column_type(self, column: Column) -> str:
        pk = PRIMARY_KEY_SUFFIX if column.primary_key else ""
        dialect = self.dialect
        semantic = column.semantic_type

        if semantic == SemanticType.TEXT:
            if column.is_unbounded:
                return dialect.text_type
            return f"VARCHAR({column.max_length})"

        if semantic == SemanticType.INTEGER:
            if column.numeric_precision != INTEGER_PRECISION:
                raise UnsupportedTypeError(
                    f"Only int({INTEGER_PRECISION}) is supported, column {column.name} "
                    f"has precision {column.numeric_precision}",
                    column=column.name, type_name=semantic.value)
            return f"{dialect.integer_type}{pk}"

        if semantic == SemanticType.NUMERIC:
            if column.numeric_precision is None:
                return f"{NUMERIC_TYPE}{pk}"
            if column.numeric_scale is not None and column.numeric_scale > 0:
                return f"{NUMERIC_TYPE}({column.numeric_precision},{column.numeric_scale}){pk}"
            return f"{NUMERIC_TYPE}({column.numeric_precision}){pk}"

        if semantic == SemanticType.BOOLEAN:
            return f"{dialect.boolean_type}{pk}"

        if semantic == SemanticType.DATE:
            return f"{dialect.datetime_type}{pk}"

        if semantic == SemanticType.BINARY:
            return dialect.blob_type

        raise UnsupportedTypeError(f"Unsupported column type {semantic} for {column.name}",
                                   column=column.name, type_name=str(semantic))

    def build_create_index(self, table: TableDescription, index: Index) -> str:
        index_name = f"{table.output_table_name}_{index.name}"
        unique = "UNIQUE " if index.unique else ""
        columns = ",".join(self.escape(c) for c in index.column_names)
        return f"CREATE {unique}INDEX {self.escape(index_name)} ON {self.escape(table.output_table_name)} ({columns});"

    def build_insert(self, table: TableDescription) -> InsertStatement:
        columns = table.ordered_columns()
        names = ",".join(self.escape(c.name) for c in columns)
        placeholders = ",".join(self.dialect.parameter_name(c.name) for c in columns)
        sql = f"INSERT INTO {self.escape(table.output_table_name)} ({names}) VALUES ({placeholders});"
        return InsertStatement(sql, [self.parameter_binding(c) for c in columns])

    def parameter_binding(self, column: Column) -> ParameterBinding:
        name = self.dialect.parameter_name(column.name)
        semantic = column.semantic_type

        if semantic == SemanticType.TEXT:
            if column.is_unbounded:
                return ParameterBinding(name, column.name, ParamType.STRING)
            return ParameterBinding(name, column.name, ParamType.STRING_FIXED_LENGTH, int(column.max_length))
        if semantic in (SemanticType.INTEGER, SemanticType.NUMERIC):
            return ParameterBinding(name, column.name, ParamType.INT32)
        if semantic == SemanticType.BOOLEAN:
            return ParameterBinding(name, column.name, ParamType.BOOLEAN)
        if semantic == SemanticType.BINARY:
            return ParameterBinding(name, column.name, ParamType.BINARY)
        if semantic == SemanticType.DATE:
            return ParameterBinding(name, column.name, ParamType.DATETIME)

        raise UnsupportedTypeError(f"No parameter type for {column.name} ({semantic})",
                                   column=column.name, type_name=str(semantic))

    def schema_statements(self, tables: Iterable[TableDescription]) -> List[str]:
        """CREATE TABLE followed by its CREATE INDEX statements, table by table"""
        statements = []
        for table in tables:
            statements.append(self.build_create_table(table))
            for index in table.indexes:
                statements.append(self.build_create_index(table, index))
        return statements

    def build_schema_script(self, tables: Iterable[TableDescription]) -> str:
        return "".join(f"{sql}\n" for sql in self.schema_statements(tables))
