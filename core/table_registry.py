#!/usr/bin/env python3
"""
TMG Table Registry
==================

Fixed catalog of the tables found in a TMG project. The legacy store carries
no primary keys, uniqueness or usable length metadata, so that knowledge lives
here, keyed by the short suffix of each source table name.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from core.errors import ConfigurationError
from core.schema_ir import Column, DEFAULT_IGNORED_COLUMNS, Index, TableDescription
from core.type_registry import SemanticType

logger = logging.getLogger(__name__)

PROJECT_SETTINGS_KEY = "_"
PROJECT_SETTINGS_NAME = "ProjectSettings"


@dataclass(frozen=True)
class TableTemplate:
    """Static configuration for one known table"""
    key: str
    output_table_name: str
    primary_key: Optional[str] = None
    ignored_columns: Tuple[str, ...] = ()
    unique_column_groups: Tuple[Tuple[str, ...], ...] = ()
    type_overrides: Tuple[Tuple[str, SemanticType], ...] = ()
    max_length_overrides: Tuple[Tuple[str, int], ...] = ()

    def instantiate(self) -> TableDescription:
        """Build a fresh, unpopulated table description from this template"""
        return TableDescription(
            key=self.key,
            output_table_name=self.output_table_name,
            primary_key=self.primary_key,
            ignored_columns=DEFAULT_IGNORED_COLUMNS | frozenset(self.ignored_columns),
            unique_column_groups=tuple(frozenset(g) for g in self.unique_column_groups),
            type_overrides=dict(self.type_overrides),
            max_length_overrides=dict(self.max_length_overrides),
        )


def _binary(*columns: str) -> Tuple[Tuple[str, SemanticType], ...]:
    return tuple((c, SemanticType.BINARY) for c in columns)


TABLE_TEMPLATES: Tuple[TableTemplate, ...] = (
    TableTemplate("$", "People", primary_key="per_no",
                  ignored_columns=("scbuff",),
                  unique_column_groups=(("dsid", "ref_id"), ("dsid", "per_no"))),
    TableTemplate("a", "SourceTypes"),
    TableTemplate("b", "FocusGroupMembers"),
    TableTemplate("c", "Flags", primary_key="flagid"),
    TableTemplate("d", "DataSets", primary_key="dsid",
                  ignored_columns=("dsp", "dsp2", "host")),
    TableTemplate("dna", "Dna", primary_key="id_dna"),
    TableTemplate("e", "EventWitnesses"),
    TableTemplate("f", "ParentChildRelationships", primary_key="recno"),
    TableTemplate("g", "Events", primary_key="recno"),
    TableTemplate("i", "Exhibits", primary_key="idexhibit",
                  max_length_overrides=(("afilename", 512), ("vfilename", 512),
                                        ("caption", 255), ("descript", 512)),
                  type_overrides=_binary("image", "audio", "video", "thumb")),
    TableTemplate("k", "TimelineLocks"),
    TableTemplate("l", "ResearchLogs",
                  max_length_overrides=(("task", 512), ("keywords", 512))),
    TableTemplate("m", "Sources", primary_key="majnum",
                  ignored_columns=("firstcd", "status"),
                  max_length_overrides=(("title", 255),)),
    TableTemplate("n", "Names", primary_key="recno"),
    TableTemplate("nd", "NameDictionary", primary_key="uid",
                  max_length_overrides=(("value", 255),)),
    TableTemplate("npt", "NamePartTypes", primary_key="id"),
    TableTemplate("npv", "NamePartValues"),
    TableTemplate("o", "FocusGroups", primary_key="groupnum"),
    TableTemplate("p", "Places", primary_key="recno"),
    TableTemplate("pd", "PlaceDictionary", primary_key="uid",
                  max_length_overrides=(("value", 255),)),
    TableTemplate("ppt", "PlacePartTypes", primary_key="id"),
    TableTemplate("ppv", "PlacePartValues"),
    TableTemplate("r", "Repositories", primary_key="recno"),
    TableTemplate("s", "SourceCitations", primary_key="recno"),
    TableTemplate("st", "Styles", primary_key="styleid",
                  max_length_overrides=(("st_display", 512),)),
    TableTemplate("t", "TagTypes", primary_key="etypenum",
                  ignored_columns=("isreport",)),
    TableTemplate("u", "SourceElements"),
    TableTemplate("w", "RepositoryLinks"),
    TableTemplate("xd", "ExcludedPairs"),
    TableTemplate(PROJECT_SETTINGS_KEY, PROJECT_SETTINGS_NAME),
)

SETTINGS_COLUMN_LENGTH = 255


class TableRegistry:
    """Lookup over the fixed table catalog"""

    def __init__(self, templates: Tuple[TableTemplate, ...] = TABLE_TEMPLATES):
        self._templates: Dict[str, TableTemplate] = {}
        for template in templates:
            if template.key in self._templates:
                raise ConfigurationError(f"Duplicate table registry key: {template.key}")
            self._templates[template.key] = template

    def __contains__(self, key: str) -> bool:
        return key in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def keys(self) -> List[str]:
        return list(self._templates)

    def lookup(self, key: str) -> TableDescription:
        """Return a fresh description for `key`; unknown keys are fatal"""
        template = self._templates.get(key)
        if template is None:
            raise ConfigurationError(f"No table registry entry for key '{key}'",
                                     details={'key': key})
        return template.instantiate()

    @staticmethod
    def is_project_settings_table(name: str) -> bool:
        """The settings table is read from the project INI file, not the source database"""
        return name in (PROJECT_SETTINGS_NAME, PROJECT_SETTINGS_KEY)

    def project_settings_table(self) -> TableDescription:
        """Settings table with its fixed category/setting/value schema"""
        table = self.lookup(PROJECT_SETTINGS_KEY)
        for position, name in enumerate(("category", "setting", "value"), start=1):
            table.add_column(Column(name, position, SemanticType.TEXT, max_length=SETTINGS_COLUMN_LENGTH))
        table.add_index(Index("category", "category", ("category",)))
        table.add_index(Index("setting", "setting", ("setting",)))
        table.add_index(Index("category_and_setting", "category+setting", ("category", "setting"), unique=True))
        return table


_default_registry: Optional[TableRegistry] = None


def get_registry() -> TableRegistry:
    """Shared registry instance"""
    global _default_registry
    if _default_registry is None:
        _default_registry = TableRegistry()
    return _default_registry


def lookup(key: str) -> TableDescription:
    return get_registry().lookup(key)


def is_project_settings_table(name: str) -> bool:
    return TableRegistry.is_project_settings_table(name)
