#!/usr/bin/env python3
"""
TMG Exporter Error Hierarchy
Canonical exception classes for the export engine.
"""

from enum import Enum


class ErrorCode(Enum):
    UNKNOWN = "UNKNOWN_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    ROW_INSERT_MISMATCH = "ROW_INSERT_MISMATCH"
    STATEMENT_EXECUTION_ERROR = "STATEMENT_EXECUTION_ERROR"


class ExporterError(Exception):
    """Base class for all exporter exceptions"""
    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ConfigurationError(ExporterError):
    """Raised when the table registry, a column type or the run setup is invalid. Always fatal."""
    def __init__(self, message: str, details: dict = None, code: ErrorCode = ErrorCode.CONFIGURATION_ERROR):
        super().__init__(message, code, details)


class UnsupportedTypeError(ConfigurationError):
    """Raised when a column resolves to a type the generator cannot render"""
    def __init__(self, message: str, column: str = None, type_name: str = None):
        details = {'column': column, 'type': type_name}
        super().__init__(message, details, ErrorCode.UNSUPPORTED_TYPE)


class RowInsertMismatch(ExporterError):
    """An INSERT affected a row count other than one. Logged, never raised out of the writer."""
    def __init__(self, table: str, row_number: int, affected: int):
        message = f"Failed to insert {table} record {row_number} (affected rows: {affected})"
        details = {'table': table, 'row': row_number, 'affected': affected}
        super().__init__(message, ErrorCode.ROW_INSERT_MISMATCH, details)


class StatementExecutionError(ExporterError):
    """Raised when a DDL/DML statement fails; the enclosing transaction is rolled back"""
    def __init__(self, message: str, sql: str = None, details: dict = None):
        details = dict(details or {})
        details['sql'] = sql
        super().__init__(message, ErrorCode.STATEMENT_EXECUTION_ERROR, details)
