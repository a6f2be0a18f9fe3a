#!/usr/bin/env python3
"""
Exporter configuration.

Priority (highest to lowest):
1. Command-line flags (applied by the CLI)
2. Environment variables (TMGX_*)
3. JSON config file passed to load_config()
4. ExporterConfig dataclass defaults
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from core.errors import ConfigurationError
from extensions.plugins.foxpro_source import DEFAULT_DRIVER

logger = logging.getLogger(__name__)

TARGET_KINDS = ('sqlite', 'mysql', 'postgresql', 'sqlserver')


@dataclass
class ExporterConfig:
    """Exporter configuration settings"""

    log_level: str = "INFO"
    output_dir: Path = Path(".")
    trim_spaces: bool = True
    odbc_driver: str = DEFAULT_DRIVER
    settings_encoding: str = "cp1252"

    # Target connection strings keyed by target kind
    targets: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Apply environment overrides"""
        self.log_level = os.environ.get('TMGX_LOG_LEVEL', self.log_level).upper()
        self.output_dir = Path(os.environ.get('TMGX_OUTPUT_DIR', self.output_dir))
        self.odbc_driver = os.environ.get('TMGX_ODBC_DRIVER', self.odbc_driver)
        self.settings_encoding = os.environ.get('TMGX_SETTINGS_ENCODING', self.settings_encoding)

        trim = os.environ.get('TMGX_TRIM_SPACES')
        if trim is not None:
            self.trim_spaces = trim.lower() in ('1', 'true', 'yes')

        self.targets = dict(self.targets)
        for kind in TARGET_KINDS:
            value = os.environ.get(f'TMGX_{kind.upper()}_URL')
            if value:
                self.targets[kind] = value

        unknown = set(self.targets) - set(TARGET_KINDS)
        if unknown:
            raise ConfigurationError(f"Unknown target kinds in configuration: {sorted(unknown)}")

    def get_safe_dict(self) -> Dict[str, Any]:
        """Configuration as dict with passwords masked"""
        return {
            'log_level': self.log_level,
            'output_dir': str(self.output_dir),
            'trim_spaces': self.trim_spaces,
            'odbc_driver': self.odbc_driver,
            'settings_encoding': self.settings_encoding,
            'targets': {k: _mask_password(v) for k, v in self.targets.items()},
        }


def _mask_password(url: str) -> str:
    parsed = urlparse(url)
    if not parsed.password:
        return url
    return url.replace(f":{parsed.password}@", ":***@", 1)


def load_config(config_file: Optional[Path] = None) -> ExporterConfig:
    """Build the configuration from an optional JSON file plus the environment"""
    values: Dict[str, Any] = {}
    if config_file is not None:
        try:
            with open(config_file, 'r') as f:
                values = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not load config file {config_file}: {e}") from e

    known = {f.name for f in fields(ExporterConfig)}
    for key in sorted(set(values) - known):
        logger.warning(f"Ignoring unknown config key '{key}'")
    return ExporterConfig(**{k: v for k, v in values.items() if k in known})
