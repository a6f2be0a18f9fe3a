#!/usr/bin/env python3
"""
Command-line tests for tools/tmg_export.py
"""

import sqlite3
from unittest.mock import patch

import pytest

from extensions.plugins.foxpro_source import FoxProSource
from tools import tmg_export


@pytest.fixture
def patched_source(fake_source):
    with patch.object(FoxProSource, "connect", return_value=fake_source) as connect:
        yield connect


@pytest.mark.unit
class TestArguments:

    def test_tmg_is_required(self):
        with pytest.raises(SystemExit):
            tmg_export.main(["--csv"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            tmg_export.main(["--version"])

        assert exc_info.value.code == 0
        assert "1.0.0" in capsys.readouterr().out

    def test_missing_project(self, tmp_path):
        assert tmg_export.main(["-t", str(tmp_path / "Family__.pjc"), "-c"]) == tmg_export.EXIT_PROJECT_NOT_FOUND

    def test_not_a_project_file(self, tmp_path):
        path = tmp_path / "Family__.txt"
        path.write_text("")
        assert tmg_export.main(["-t", str(path), "-c"]) == tmg_export.EXIT_NOT_A_PROJECT

    def test_existing_sqlite_database(self, tmp_path, project_file):
        db_path = tmp_path / "family.sqlite3"
        db_path.write_bytes(b"")
        assert tmg_export.main(["-t", str(project_file), "-l", str(db_path)]) == tmg_export.EXIT_DATABASE_EXISTS

    def test_no_output_selected(self, project_file):
        assert tmg_export.main(["-t", str(project_file)]) == tmg_export.EXIT_NO_OUTPUT

    def test_target_from_environment_counts_as_output(self, tmp_path, project_file, monkeypatch, patched_source):
        monkeypatch.setenv("TMGX_SQLITE_URL", str(tmp_path / "env.sqlite3"))
        assert tmg_export.main(["-t", str(project_file)]) == tmg_export.EXIT_OK


@pytest.mark.integration
class TestExport:

    def test_sqlite_and_csv(self, tmp_path, project_file, patched_source):
        db_path = tmp_path / "family.sqlite3"
        out_dir = tmp_path / "out"

        code = tmg_export.main(["-t", str(project_file), "-l", str(db_path), "-c", "--output-dir", str(out_dir)])

        assert code == tmg_export.EXIT_OK
        patched_source.assert_called_once()
        assert patched_source.call_args.args[0] == project_file.parent.resolve()
        conn = sqlite3.connect(str(db_path))
        try:
            assert conn.execute("SELECT COUNT(*) FROM People").fetchone()[0] == 2
        finally:
            conn.close()
        assert (out_dir / "Flags.csv").exists()

    def test_schema_only(self, tmp_path, project_file, patched_source, capsys):
        db_path = tmp_path / "family.sqlite3"

        code = tmg_export.main(["-t", str(project_file), "-l", str(db_path), "--schema-only"])

        assert code == tmg_export.EXIT_OK
        out = capsys.readouterr().out
        assert "-- sqlite" in out
        assert "CREATE TABLE [ProjectSettings] ([category] VARCHAR(255)" in out
        assert "CREATE UNIQUE INDEX [People_dsid_ref] ON [People] ([dsid],[ref_id]);" in out
        assert not db_path.exists()

    def test_fatal_error_exit_code(self, tmp_path, project_file, fake_source, patched_source):
        fake_source.tables["family_zz"] = ([], None)

        code = tmg_export.main(["-t", str(project_file), "-l", str(tmp_path / "family.sqlite3")])

        assert code == tmg_export.EXIT_FAILED
