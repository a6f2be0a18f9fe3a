#!/usr/bin/env python3
"""
TMG Exporter - Programmatic Entry Point
This is the canonical way to use the exporter from Python code.

Command-line usage lives in tools/tmg_export.py:
    python tools/tmg_export.py --tmg Family__.pjc --sqlite family.sqlite3
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from config.settings import ExporterConfig, load_config
from core.migration import MigrationReport, MigrationRunner
from core.schema_ir import TableDescription
from extensions.plugins.file_exports import CsvOutput, JsonOutput, XmlOutput
from extensions.plugins.foxpro_source import FoxProSource
from extensions.plugins.settings_source import ProjectSettingsSource
from extensions.plugins.targets import create_writer, writer_for_url
from extensions.plugins.tmg_project import TmgProject

logger = logging.getLogger(__name__)

TMG_EXPORTER_VERSION = "1.0.0"

FILE_OUTPUTS = {
    'csv': CsvOutput,
    'json': JsonOutput,
    'xml': XmlOutput,
}


class TmgExporter:
    """
    Blessed API for exporting a TMG project

    Example:
        >>> from tmg_exporter import TmgExporter
        >>>
        >>> with TmgExporter("/data/Family__.pjc") as exporter:
        ...     print(exporter.schema_script("postgresql"))
        ...     report = exporter.export(targets={"sqlite": "family.sqlite3"}, formats=["csv"])
    """

    def __init__(self, project_file: Union[str, Path], config: Optional[ExporterConfig] = None):
        """
        Open the project's FoxPro tables

        Args:
            project_file: Path to the `<name>__.pjc` project file
            config: Exporter settings (default: environment and defaults only)
        """
        self.project = TmgProject(project_file)
        self.config = config or load_config()
        self.source = FoxProSource.connect(self.project.directory, driver=self.config.odbc_driver,
                                           trim_spaces=self.config.trim_spaces)
        self.settings = ProjectSettingsSource(self.project.project_file, encoding=self.config.settings_encoding)

    def tables(self) -> List[TableDescription]:
        """Resolved table descriptions, project settings table first"""
        runner = MigrationRunner(self.source, self.source, self.settings)
        return runner.introspect(self.project.table_prefix)

    def schema_script(self, dialect: str) -> str:
        """CREATE TABLE / CREATE INDEX script for one target engine"""
        return create_writer(dialect, "").generate_schema_script(self.tables())

    def export(self, targets: Optional[dict] = None, formats: Iterable[str] = (),
               output_dir: Union[str, Path, None] = None, urls: Iterable[str] = ()) -> MigrationReport:
        """
        Export every table to the given database targets and file formats

        Args:
            targets: Target kind -> connection string (default: configured targets)
            formats: Any of 'csv', 'json', 'xml'
            output_dir: Directory for file outputs (default: configured output_dir)
            urls: Extra targets as URLs (sqlite:///family.sqlite3, postgresql://...)
        """
        targets = self.config.targets if targets is None else targets
        directory = Path(output_dir) if output_dir is not None else self.config.output_dir

        writers = [create_writer(kind, target) for kind, target in targets.items()]
        writers.extend(writer_for_url(url) for url in urls)
        outputs = [FILE_OUTPUTS[fmt.lower()](directory) for fmt in formats]

        with MigrationRunner(self.source, self.source, self.settings, writers=writers, outputs=outputs) as runner:
            return runner.run(self.project.table_prefix)

    def close(self):
        """Close the source connection"""
        self.source.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def connect(project_file: Union[str, Path]) -> TmgExporter:
    """
    Open a TMG project for export

    Example:
        >>> import tmg_exporter
        >>> exporter = tmg_exporter.connect("/data/Family__.pjc")
    """
    return TmgExporter(project_file)


def main():
    from tools.tmg_export import main as cli_main
    return cli_main()


if __name__ == '__main__':
    raise SystemExit(main())
