"""
TMG project file handling.

A project is a `<name>__.pjc` INI file sitting next to its FoxPro tables. Every
table of the project is named `<name>_<key>` (lower-cased), so the table prefix
is the file stem minus its final underscore.
"""

import logging
from pathlib import Path
from typing import Union

from core.errors import ConfigurationError

logger = logging.getLogger(__name__)

PROJECT_EXTENSION = ".pjc"
PROJECT_STEM_SUFFIX = "__"


class TmgProject:
    def __init__(self, project_file: Union[str, Path]):
        self.project_file = Path(project_file)
        self.validate(self.project_file)

    @staticmethod
    def is_project_file(path: Path) -> bool:
        return path.suffix.lower() == PROJECT_EXTENSION

    @staticmethod
    def validate(path: Path) -> None:
        if path.stem.endswith(PROJECT_STEM_SUFFIX) and TmgProject.is_project_file(path) and path.is_file():
            return
        message = f"Not a valid project file: {path}"
        logger.error(message)
        raise ConfigurationError(message, details={'project_file': str(path)})

    @property
    def directory(self) -> Path:
        return self.project_file.resolve().parent

    @property
    def table_prefix(self) -> str:
        return self.project_file.stem[:-1].lower()

    def __repr__(self):
        return f"TmgProject({str(self.project_file)!r})"
