#!/usr/bin/env python3
"""
TMG Exporter Test Configuration - PyTest Configuration and Fixtures

Shared fixtures: an in-memory FoxPro stand-in, a project file on disk and
SQLite writers.
"""

import datetime
import os
import sys
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import pandas as pd
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.introspector import RawColumn, RawIndex
from core.schema_ir import TableDescription
from core.sql_builder import SQLITE, SqlBuilder
from core.writer import DatabaseWriter
from extensions.plugins.targets import connect_sqlite

PROJECT_INI = """[General]
Version=8.0
Name=Family

[Advanced]
AutoBackup=1
Restricted
"""


class FakeFoxProSource:
    """Source schema and row source backed by in-memory metadata and frames"""

    def __init__(self, tables: Dict[str, Tuple[List[RawColumn], pd.DataFrame]],
                 indexes: Sequence[RawIndex] = ()):
        self.tables = tables
        self.indexes = list(indexes)
        self.closed = False

    def list_tables(self, prefix: str = "") -> List[str]:
        return sorted(name for name in self.tables if name.startswith(prefix))

    def list_columns(self, table_name: str) -> List[RawColumn]:
        return self.tables[table_name][0]

    def list_indexes(self) -> List[RawIndex]:
        return list(self.indexes)

    def fetch_rows(self, table: TableDescription) -> pd.DataFrame:
        return self.tables[table.input_table_name][1]

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def people_columns() -> List[RawColumn]:
    return [
        RawColumn("per_no", "Integer", 1, numeric_precision=4),
        RawColumn("tt", "Char", 2, max_length=1),
        RawColumn("givenname", "Char", 3, max_length=30),
        RawColumn("dsid", "Integer", 4, numeric_precision=4),
        RawColumn("ref_id", "Integer", 5, numeric_precision=4),
        RawColumn("scbuff", "Char", 6, max_length=10),
    ]


def flag_columns() -> List[RawColumn]:
    return [
        RawColumn("flagid", "Integer", 1, numeric_precision=4),
        RawColumn("flagname", "Char", 2, max_length=25),
        RawColumn("created", "DBDate", 3),
        RawColumn("active", "Boolean", 4),
        RawColumn("weight", "Numeric", 5, numeric_precision=6, numeric_scale=2),
    ]


@pytest.fixture
def fake_source():
    """Two-table TMG project: People (family_$) and Flags (family_c)"""
    people = pd.DataFrame({
        "per_no": [1, 2],
        "tt": ["x", "y"],
        "givenname": ["Ann", "Bob"],
        "dsid": [1, 1],
        "ref_id": [10, 11],
    })
    flags = pd.DataFrame({
        "flagid": [1, 2],
        "flagname": ["Living", "Adopted"],
        "created": [datetime.datetime(2001, 2, 3), datetime.datetime(2010, 11, 12, 8, 30)],
        "active": [True, False],
        "weight": [1.5, 2.25],
    })
    indexes = [
        RawIndex("family_$", "dsid_ref", "dsid", "dsid"),
        RawIndex("family_$", "dsid_ref", "ref_id", "ref_id"),
        RawIndex("family_$", "scbuff", "scbuff", "scbuff"),
        RawIndex("family_c", "flagname", "flagname", "flagname"),
    ]
    return FakeFoxProSource({
        "family_$": (people_columns(), people),
        "family_c": (flag_columns(), flags),
    }, indexes)


@pytest.fixture
def project_file(tmp_path) -> Path:
    """`Family__.pjc` settings file in a temporary project directory"""
    path = tmp_path / "Family__.pjc"
    path.write_text(PROJECT_INI, encoding="cp1252")
    return path


@pytest.fixture
def sqlite_writer():
    """Open writer over an in-memory SQLite database"""
    writer = DatabaseWriter(lambda: connect_sqlite(":memory:"), SqlBuilder(SQLITE))
    writer.open()
    yield writer
    writer.close()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep TMGX_* settings from the calling shell out of the tests"""
    for key in list(os.environ):
        if key.startswith("TMGX_"):
            monkeypatch.delenv(key, raising=False)


# Custom markers for test organization
def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test component interaction"
    )
    config.addinivalue_line(
        "markers", "database: Tests that write to a live SQLite database"
    )
