"""
Project settings row source.

The ProjectSettings table has no FoxPro counterpart; its rows are the
section/key/value entries of the project's own INI file.
"""

import configparser
import logging
from pathlib import Path
from typing import List, Tuple, Union

import pandas as pd

from core.errors import ConfigurationError
from core.schema_ir import TableDescription

logger = logging.getLogger(__name__)

SETTINGS_COLUMNS = ["category", "setting", "value"]

# Keeps configparser from copying a [DEFAULT] section's keys into every other section
_NO_DEFAULT_SECTION = "__no_default_section__"


class ProjectSettingsSource:
    def __init__(self, ini_file: Union[str, Path], encoding: str = "cp1252"):
        self.ini_file = Path(ini_file)
        self.encoding = encoding

    def _parser(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None, strict=False, allow_no_value=True,
                                           default_section=_NO_DEFAULT_SECTION)
        parser.optionxform = str
        return parser

    def read_settings(self) -> List[Tuple[str, str, str]]:
        parser = self._parser()
        try:
            with open(self.ini_file, encoding=self.encoding) as f:
                lines = f.read().splitlines()
            parser.read_string("\n".join(self._skip_orphan_keys(lines)), source=str(self.ini_file))
        except (OSError, UnicodeDecodeError, configparser.Error) as e:
            raise ConfigurationError(f"Failed to read project settings from {self.ini_file}: {e}") from e

        rows = []
        for section in parser.sections():
            for key, value in parser.items(section, raw=True):
                rows.append((section, key, value if value is not None else ""))
        return rows

    def _skip_orphan_keys(self, lines: List[str]) -> List[str]:
        """Drop key lines that come before the first [section] header"""
        for number, line in enumerate(lines):
            if configparser.ConfigParser.SECTCRE.match(line.strip()):
                orphans = lines[:number]
                break
        else:
            orphans = lines

        for line in orphans:
            text = line.strip()
            if text and not text.startswith(("#", ";")):
                logger.warning(f"Skipping setting outside any section in {self.ini_file}: {text}")
        return lines[len(orphans):]

    def fetch_rows(self, table: TableDescription) -> pd.DataFrame:
        logger.info(f"Getting the {table.output_table_name} data...")
        frame = pd.DataFrame(self.read_settings(), columns=SETTINGS_COLUMNS, dtype=object)
        logger.info(f"Finished getting the {table.output_table_name} data.")
        return frame
