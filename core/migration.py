"""
TMG Migration Runner
====================

Drives one export run:
1. introspect the source against the table registry
2. create the schema on every database target (each committed before any data moves)
3. for each table, fetch its rows once and hand them to every output in order
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

import pandas as pd

from core.introspector import SchemaIntrospector, SourceSchema
from core.schema_ir import TableDescription
from core.table_registry import TableRegistry, get_registry
from core.writer import DatabaseWriter, WriteResult

logger = logging.getLogger(__name__)


class RowSource(Protocol):
    def fetch_rows(self, table: TableDescription) -> pd.DataFrame: ...


class Output(Protocol):
    def write(self, table: TableDescription, rows: pd.DataFrame) -> Any: ...


@dataclass
class MigrationReport:
    """Migration progress and results"""
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    tables_migrated: int = 0
    rows_read: int = 0
    rows_inserted: int = 0
    row_mismatches: int = 0
    warnings: List[str] = field(default_factory=list)

    def record(self, result: WriteResult) -> None:
        self.rows_inserted += result.inserted
        self.row_mismatches += result.mismatched
        if result.mismatched:
            self.warnings.append(f"{result.table}: {result.mismatched} rows not inserted")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration": (self.end_time - self.start_time).total_seconds() if self.end_time else None,
            "tables_migrated": self.tables_migrated,
            "rows_read": self.rows_read,
            "rows_inserted": self.rows_inserted,
            "row_mismatches": self.row_mismatches,
            "warnings": self.warnings,
        }


class MigrationRunner:
    def __init__(self, source: SourceSchema, row_source: RowSource, settings_source: RowSource,
                 writers: Sequence[DatabaseWriter] = (), outputs: Sequence[Output] = (),
                 registry: Optional[TableRegistry] = None):
        self.source = source
        self.row_source = row_source
        self.settings_source = settings_source
        self.writers = list(writers)
        self.outputs = list(outputs)
        self.registry = registry or get_registry()
        self.introspector = SchemaIntrospector(self.registry)

    def close(self):
        """Close every target connection"""
        for writer in self.writers:
            writer.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def introspect(self, table_prefix: str) -> List[TableDescription]:
        tables = self.introspector.introspect(self.source, table_prefix)
        logger.info(f"Resolved {len(tables)} tables")
        return tables

    def create_schemas(self, tables: List[TableDescription]) -> None:
        for writer in self.writers:
            writer.open()
            writer.create_schema(tables)

    def fetch_rows(self, table: TableDescription) -> pd.DataFrame:
        if self.registry.is_project_settings_table(table.output_table_name):
            return self.settings_source.fetch_rows(table)
        return self.row_source.fetch_rows(table)

    def run(self, table_prefix: str) -> MigrationReport:
        """Run the export"""
        report = MigrationReport()
        logger.info("Started export")

        tables = self.introspect(table_prefix)
        self.create_schemas(tables)

        for table in tables:
            rows = self.fetch_rows(table)
            report.rows_read += len(rows)

            for writer in self.writers:
                report.record(writer.write_rows(table, rows))
            for output in self.outputs:
                output.write(table, rows)

            report.tables_migrated += 1

        report.end_time = datetime.now()
        logger.info("Finished export")
        return report
