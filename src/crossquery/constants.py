"""
Enumerations and lookup tables shared by every CrossQuery component.
"""

from enum import Enum
from typing import Dict, FrozenSet, Tuple


class _LowerCaseEnum(str, Enum):
    """String enum whose values are lower-case names, looked up case-insensitively."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    def __str__(self) -> str:
        return self.value


class FieldType(_LowerCaseEnum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


class FilterOperator(_LowerCaseEnum):
    LESS_THAN = "less_than"
    GREATER_THAN = "greater_than"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    BLANK = "blank"
    NOT_BLANK = "not_blank"


class SortDirection(_LowerCaseEnum):
    ASC = "asc"
    DESC = "desc"


# Blank checks are generic: every backend implements them regardless of field type
_BLANK_OPERATORS = frozenset({FilterOperator.BLANK, FilterOperator.NOT_BLANK})

_STRING_OPERATORS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.CONTAINS,
        FilterOperator.NOT_CONTAINS,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
        FilterOperator.IN,
        FilterOperator.NOT_IN,
    }
)

_SCALAR_OPERATORS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.GREATER_THAN,
        FilterOperator.LESS_THAN,
        FilterOperator.IN,
        FilterOperator.NOT_IN,
        FilterOperator.BETWEEN,
    }
)

OPERATORS_BY_FIELD_TYPE: Dict[FieldType, FrozenSet[FilterOperator]] = {
    FieldType.STRING: _STRING_OPERATORS | _BLANK_OPERATORS,
    FieldType.NUMBER: _SCALAR_OPERATORS | _BLANK_OPERATORS,
    FieldType.DATE: _SCALAR_OPERATORS | _BLANK_OPERATORS,
    FieldType.BOOLEAN: _SCALAR_OPERATORS | _BLANK_OPERATORS,
}

# Operators that only make sense on ordered values
ORDERED_OPERATORS = frozenset({FilterOperator.LESS_THAN, FilterOperator.GREATER_THAN, FilterOperator.BETWEEN})
ORDERED_FIELD_TYPES = frozenset({FieldType.NUMBER, FieldType.DATE})

# Accepted date-time layouts, tried in order (ISO date-time is handled by fromisoformat)
DATE_TIME_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S",
    "%d-%m-%Y %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
)
DATE_ONLY_FORMAT = "%Y-%m-%d"


def operators_for(field_type: FieldType) -> FrozenSet[FilterOperator]:
    """Return the operator set legal for ``field_type``."""
    return OPERATORS_BY_FIELD_TYPE[FieldType(field_type)]
