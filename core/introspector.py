#!/usr/bin/env python3
"""
TMG Schema Introspector
=======================

Reconciles the raw column and index metadata reported by the legacy source with
the table registry, producing fully typed table descriptions.

Failure policy:
- unknown column types and unknown tables are fatal (ConfigurationError)
- missing precision, scale or length are legitimately optional and pass as None
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from core.errors import ConfigurationError
from core.schema_ir import Column, Index, TableDescription
from core.table_registry import TableRegistry, get_registry
from core.type_registry import INTEGER_PRECISION, SemanticType, TypeRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawColumn:
    """Column metadata as reported by the source"""
    name: str
    raw_type: str
    ordinal_position: int
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None
    max_length: Optional[int] = None


@dataclass(frozen=True)
class RawIndex:
    """One row of index metadata: a single column participating in a named index"""
    table_name: str
    index_name: str
    expression: str
    column_name: str


class SourceSchema(Protocol):
    def list_tables(self, prefix: str) -> List[str]: ...

    def list_columns(self, table_name: str) -> List[RawColumn]: ...

    def list_indexes(self) -> List[RawIndex]: ...


class SchemaIntrospector:
    """Resolves registry templates against raw source metadata"""

    def __init__(self, registry: Optional[TableRegistry] = None):
        self.registry = registry or get_registry()

    def resolve(self, table: TableDescription, raw_columns: Iterable[RawColumn],
                raw_indexes: Iterable[RawIndex], table_prefix: str = "") -> TableDescription:
        """Populate `table` in place from raw metadata and return it"""
        table.input_table_name = f"{table_prefix}{table.key}"

        self._add_columns(table, list(raw_columns))
        self._add_indexes(table, list(raw_indexes))

        logger.debug(f"Resolved {table.input_table_name}: {table.summary()}")
        return table

    def _add_columns(self, table: TableDescription, raw_columns: List[RawColumn]) -> None:
        if not raw_columns:
            return

        positions = [c.ordinal_position for c in raw_columns]
        if len(set(positions)) != len(positions):
            raise ConfigurationError(f"Duplicate ordinal positions reported for {table.input_table_name}",
                                     details={'table': table.input_table_name, 'positions': positions})

        # Ignored columns leave no gaps in the resolved ordering
        next_position = min(positions)
        for raw in sorted(raw_columns, key=lambda c: c.ordinal_position):
            if table.is_ignored_column(raw.name):
                logger.debug(f"Ignoring column {table.input_table_name}.{raw.name}")
                continue

            column = self.resolve_column(table, raw, next_position)
            table.add_column(column)
            next_position += 1

    @staticmethod
    def resolve_column(table: TableDescription, raw: RawColumn, ordinal_position: int) -> Column:
        semantic_type = table.type_override(raw.name)
        if semantic_type is None:
            semantic_type = TypeRegistry.map_to_semantic(raw.raw_type, column=f"{table.input_table_name}.{raw.name}")

        max_length = table.max_length_override(raw.name)
        if max_length is None:
            max_length = raw.max_length

        if semantic_type == SemanticType.INTEGER and raw.numeric_precision != INTEGER_PRECISION:
            raise ConfigurationError(
                f"Only int({INTEGER_PRECISION}) is supported: {table.input_table_name}.{raw.name} "
                f"has precision {raw.numeric_precision}",
                details={'table': table.input_table_name, 'column': raw.name,
                         'precision': raw.numeric_precision})

        is_primary_key = table.primary_key is not None and raw.name == table.primary_key

        return Column(
            name=raw.name,
            ordinal_position=ordinal_position,
            semantic_type=semantic_type,
            max_length=max_length,
            numeric_precision=raw.numeric_precision,
            numeric_scale=raw.numeric_scale,
            primary_key=is_primary_key,
        )

    def _add_indexes(self, table: TableDescription, raw_indexes: List[RawIndex]) -> None:
        groups: Dict[str, List[RawIndex]] = OrderedDict()
        for raw in raw_indexes:
            if raw.table_name != table.input_table_name:
                continue
            groups.setdefault(raw.index_name, []).append(raw)

        for index_name in sorted(groups):
            rows = groups[index_name]
            column_names = [r.column_name for r in rows]

            ignored = [c for c in column_names if table.is_ignored_column(c)]
            if ignored:
                logger.debug(f"Skipping index {index_name} on {table.input_table_name}: "
                             f"ignored columns {ignored}")
                continue

            table.add_index(Index(
                name=index_name,
                expression=rows[0].expression,
                column_names=tuple(column_names),
                unique=table.is_declared_unique(column_names),
            ))

    def introspect(self, source: SourceSchema, table_prefix: str) -> List[TableDescription]:
        """Resolve every prefixed source table; the project settings table comes first"""
        tables = [self.registry.project_settings_table()]
        all_indexes = source.list_indexes()

        for table_name in sorted(source.list_tables(table_prefix)):
            if not table_name.startswith(table_prefix):
                continue
            logger.info(f"Processing {table_name} table...")

            key = table_name[len(table_prefix):]
            table = self.registry.lookup(key)
            if self.registry.is_project_settings_table(table.output_table_name):
                raise ConfigurationError(f"Source table {table_name} collides with the project settings table")

            self.resolve(table, source.list_columns(table_name), all_indexes, table_prefix)
            tables.append(table)

        return tables


def resolve(table: TableDescription, raw_columns: Sequence[RawColumn],
            raw_indexes: Sequence[RawIndex], table_prefix: str = "") -> TableDescription:
    return SchemaIntrospector().resolve(table, raw_columns, raw_indexes, table_prefix)
