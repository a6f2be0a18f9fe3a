#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TMG Exporter Core Package Initialization
Exports the main engine components for clean imports
"""

from core.errors import (
    ConfigurationError,
    ErrorCode,
    ExporterError,
    RowInsertMismatch,
    StatementExecutionError,
    UnsupportedTypeError,
)
from core.type_registry import SemanticType, TypeRegistry
from core.schema_ir import Column, Index, TableDescription
from core.table_registry import TableRegistry, get_registry
from core.introspector import RawColumn, RawIndex, SchemaIntrospector
from core.sql_builder import DialectConfig, SqlBuilder, get_dialect
from core.writer import DatabaseWriter, WriteResult
from core.migration import MigrationReport, MigrationRunner

__all__ = [
    'ConfigurationError', 'ErrorCode', 'ExporterError', 'RowInsertMismatch',
    'StatementExecutionError', 'UnsupportedTypeError',
    'SemanticType', 'TypeRegistry',
    'Column', 'Index', 'TableDescription',
    'TableRegistry', 'get_registry',
    'RawColumn', 'RawIndex', 'SchemaIntrospector',
    'DialectConfig', 'SqlBuilder', 'get_dialect',
    'DatabaseWriter', 'WriteResult',
    'MigrationReport', 'MigrationRunner',
]
