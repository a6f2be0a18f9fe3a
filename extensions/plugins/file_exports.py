"""
Flat file exports: one CSV, JSON or XML file per table, named after the
table's output name. Binary cells are written base64-encoded.
"""

import base64
import logging
from pathlib import Path
from typing import Union

import pandas as pd

from core.schema_ir import TableDescription
from extensions.plugins.foxpro_source import is_text_series

logger = logging.getLogger(__name__)


def _encode_binary(value):
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


def prepare_frame(rows: pd.DataFrame) -> pd.DataFrame:
    frame = rows.copy()
    for column in frame.columns:
        if is_text_series(frame[column]):
            frame[column] = frame[column].map(_encode_binary)
    return frame


class FileOutput:
    extension = ""

    def __init__(self, output_dir: Union[str, Path] = "."):
        self.output_dir = Path(output_dir)

    def path_for(self, table: TableDescription) -> Path:
        return self.output_dir / f"{table.output_table_name}.{self.extension}"

    def write(self, table: TableDescription, rows: pd.DataFrame) -> Path:
        path = self.path_for(table)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Writing data to {path}...")
        self.serialize(table, prepare_frame(rows), path)
        logger.info(f"Finished writing data to {path}.")
        return path

    def serialize(self, table: TableDescription, frame: pd.DataFrame, path: Path) -> None:
        raise NotImplementedError


class CsvOutput(FileOutput):
    extension = "csv"

    def serialize(self, table, frame, path):
        frame.to_csv(path, index=False)


class JsonOutput(FileOutput):
    extension = "json"

    def serialize(self, table, frame, path):
        frame.to_json(path, orient="records", indent=2, date_format="iso")


class XmlOutput(FileOutput):
    extension = "xml"

    def serialize(self, table, frame, path):
        frame.to_xml(path, index=False, root_name="DocumentElement",
                     row_name=table.output_table_name, parser="etree")
