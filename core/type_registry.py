from enum import Enum
from typing import Dict, Optional, Union

from core.errors import UnsupportedTypeError

# Legacy provider reports memo fields as character columns of this length
UNBOUNDED_TEXT_LENGTH = 2 ** 31 - 1

# Integer columns in the legacy store are always 4 bytes wide
INTEGER_PRECISION = 4


class SemanticType(Enum):
    TEXT = "Text"
    INTEGER = "Integer"
    NUMERIC = "Numeric"
    BOOLEAN = "Boolean"
    DATE = "Date"
    BINARY = "Binary"


class TypeRegistry:
    # Raw source type name -> semantic type
    # Keys are lower-cased; lookups normalise the raw name the same way
    SOURCE_TO_SEMANTIC: Dict[str, Dict[str, SemanticType]] = {
        'oledb': {
            'char': SemanticType.TEXT,
            'integer': SemanticType.INTEGER,
            'numeric': SemanticType.NUMERIC,
            'boolean': SemanticType.BOOLEAN,
            'dbdate': SemanticType.DATE,
            'binary': SemanticType.BINARY,
        },
        'foxpro': {
            'c': SemanticType.TEXT,
            'character': SemanticType.TEXT,
            'char': SemanticType.TEXT,
            'varchar': SemanticType.TEXT,
            'memo': SemanticType.TEXT,
            'i': SemanticType.INTEGER,
            'int': SemanticType.INTEGER,
            'integer': SemanticType.INTEGER,
            'n': SemanticType.NUMERIC,
            'numeric': SemanticType.NUMERIC,
            'decimal': SemanticType.NUMERIC,
            'l': SemanticType.BOOLEAN,
            'logical': SemanticType.BOOLEAN,
            'bit': SemanticType.BOOLEAN,
            'd': SemanticType.DATE,
            'date': SemanticType.DATE,
            't': SemanticType.DATE,
            'datetime': SemanticType.DATE,
            'timestamp': SemanticType.DATE,
            'general': SemanticType.BINARY,
            'blob': SemanticType.BINARY,
            'binary': SemanticType.BINARY,
            'varbinary': SemanticType.BINARY,
        },
    }

    @staticmethod
    def lookup(raw_type: Union[str, SemanticType, None]) -> Optional[SemanticType]:
        """Return the semantic type for a raw type name, or None when it is not known"""
        if isinstance(raw_type, SemanticType):
            return raw_type
        if raw_type is None:
            return None

        key = str(raw_type).strip().lower()
        for mapping in TypeRegistry.SOURCE_TO_SEMANTIC.values():
            if key in mapping:
                return mapping[key]

        # Semantic names themselves ("Text", "Date", ...) are accepted as-is
        for semantic in SemanticType:
            if semantic.value.lower() == key:
                return semantic
        return None

    @staticmethod
    def map_to_semantic(raw_type: Union[str, SemanticType, None], column: str = None) -> SemanticType:
        """Map a raw source type to its semantic type. Unknown types are fatal."""
        semantic = TypeRegistry.lookup(raw_type)
        if semantic is None:
            where = f" for column {column}" if column else ""
            raise UnsupportedTypeError(f"Unknown database type{where}: {raw_type}",
                                       column=column, type_name=str(raw_type))
        return semantic
