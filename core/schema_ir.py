from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from core.type_registry import SemanticType, UNBOUNDED_TEXT_LENGTH

DEFAULT_IGNORED_COLUMNS = frozenset({"tt", "ispicked"})


@dataclass(frozen=True)
class Column:
    """Resolved column definition"""
    name: str
    ordinal_position: int
    semantic_type: SemanticType
    max_length: Optional[int] = None
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None
    primary_key: bool = False

    @property
    def is_unbounded(self) -> bool:
        """Text column without a practical length limit"""
        return self.max_length is None or self.max_length >= UNBOUNDED_TEXT_LENGTH

    def __str__(self):
        text = f"{self.ordinal_position}:{self.name}, {self.semantic_type.value}"
        if self.semantic_type == SemanticType.TEXT and self.max_length is not None:
            text += f"({self.max_length})"
        elif self.semantic_type in (SemanticType.INTEGER, SemanticType.NUMERIC) and self.numeric_precision is not None:
            if self.numeric_scale is not None:
                text += f"({self.numeric_precision}:{self.numeric_scale})"
            else:
                text += f"({self.numeric_precision})"
        return text


@dataclass(frozen=True)
class Index:
    """Resolved index definition"""
    name: str
    expression: str
    column_names: Tuple[str, ...]
    unique: bool = False

    def __post_init__(self):
        if not self.column_names:
            raise ValueError(f"Index {self.name} has no columns")
        object.__setattr__(self, 'column_names', tuple(self.column_names))

    def __str__(self):
        if len(self.column_names) == 1:
            column = self.column_names[0]
            if column == self.expression:
                return f"{self.name}, Column: {column}"
            return f"{self.name}, Column: {column}, Expression: {self.expression}"
        return f"{self.name}, Columns: {','.join(self.column_names)}, Expression: {self.expression}"


def is_declared_unique(groups: Iterable[FrozenSet[str]], column_names: Iterable[str]) -> bool:
    """True iff one of the declared groups has exactly the given members"""
    wanted = frozenset(column_names)
    return any(group == wanted for group in groups)


@dataclass
class TableDescription:
    """Table definition: registry configuration plus the resolved schema"""
    key: str
    output_table_name: str
    primary_key: Optional[str] = None
    ignored_columns: FrozenSet[str] = DEFAULT_IGNORED_COLUMNS
    unique_column_groups: Tuple[FrozenSet[str], ...] = ()
    type_overrides: Mapping[str, SemanticType] = field(default_factory=dict)
    max_length_overrides: Mapping[str, int] = field(default_factory=dict)
    input_table_name: Optional[str] = None
    columns: List[Column] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)

    def __post_init__(self):
        self.ignored_columns = frozenset(self.ignored_columns)
        self.unique_column_groups = tuple(frozenset(g) for g in self.unique_column_groups)
        self.type_overrides = MappingProxyType(dict(self.type_overrides))
        self.max_length_overrides = MappingProxyType(dict(self.max_length_overrides))

    def is_ignored_column(self, column_name: str) -> bool:
        return column_name in self.ignored_columns

    def type_override(self, column_name: str) -> Optional[SemanticType]:
        return self.type_overrides.get(column_name)

    def max_length_override(self, column_name: str) -> Optional[int]:
        return self.max_length_overrides.get(column_name)

    def is_declared_unique(self, column_names: Iterable[str]) -> bool:
        return is_declared_unique(self.unique_column_groups, column_names)

    def add_column(self, column: Column) -> 'TableDescription':
        self.columns.append(column)
        return self

    def add_index(self, index: Index) -> 'TableDescription':
        self.indexes.append(index)
        return self

    def ordered_columns(self) -> List[Column]:
        return sorted(self.columns, key=lambda c: c.ordinal_position)

    def column_names(self) -> List[str]:
        return [c.name for c in self.ordered_columns()]

    def get_column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def summary(self) -> Dict[str, object]:
        return {
            'key': self.key,
            'input': self.input_table_name,
            'output': self.output_table_name,
            'columns': [str(c) for c in self.ordered_columns()],
            'indexes': [str(i) for i in self.indexes],
        }
