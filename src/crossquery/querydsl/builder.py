"""Criteria to predicate-tree translation.

This is the backend-neutral front half shared by every compiler: it resolves field
types, parses filter values and applies the operator contract (whole-day widening,
blank checks, full-text fan-out, soft drop of unsupported operators) once, so that each
backend only has to lower the resulting :class:`~crossquery.querydsl.q.Node`.
"""

from datetime import timedelta
from typing import Iterable, List, Optional

from ..constants import ORDERED_FIELD_TYPES, ORDERED_OPERATORS, FieldType, FilterOperator
from ..exceptions import UnsupportedOperatorForTypeError, ValidationError
from ..logger import Logger
from ..metadata import string_fields
from ..parser import is_date_without_time, parse
from ..schema import FilterCriteria, FilterDescriptor, SearchCriteria
from .q import And, Compare, IsNull, Node, Not, Or, Range, TextMatch

__all__ = ("CriteriaBuilder",)

logger = Logger(__name__)

# End of a whole-day window: start + 1 day - 1 microsecond (datetime resolution)
WHOLE_DAY = timedelta(days=1) - timedelta(microseconds=1)

_TEXT_MODES = {
    FilterOperator.CONTAINS: "contains",
    FilterOperator.NOT_CONTAINS: "contains",
    FilterOperator.STARTS_WITH: "starts_with",
    FilterOperator.ENDS_WITH: "ends_with",
}

_SINGLE_VALUE_OPERATORS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.LESS_THAN,
        FilterOperator.GREATER_THAN,
        FilterOperator.BETWEEN,
        *_TEXT_MODES,
    }
)


class CriteriaBuilder:
    """Build a predicate tree from :class:`SearchCriteria`.

    Args:
        filters: The entity's filter descriptors, used to resolve unset field
            types and to find the STRING fields searched by full-text.

    Example:
        >>> builder = CriteriaBuilder(extract_filters(OperatingSystem))
        >>> builder.build(SearchCriteria(filters=[{"key": "name", "operator": "contains", "value": "win"}]))
        <TextMatch: {'name': {'$contains': 'win'}}>
    """

    def __init__(self, filters: Iterable[FilterDescriptor] = ()):
        self.filters = tuple(filters)

    def resolve_field_type(self, criteria: FilterCriteria) -> FieldType:
        if criteria.field_type is not None:
            return criteria.field_type
        for descriptor in self.filters:
            if descriptor.key == criteria.key:
                return descriptor.field_type
        return FieldType.STRING

    def build(self, criteria: SearchCriteria) -> Optional[Node]:
        """Return the AND of every filter and the full-text term, or ``None`` when nothing applies."""
        terms: List[Node] = []
        for filter_criteria in criteria.filters:
            node = self.filter_to_node(filter_criteria)
            if node is not None:
                terms.append(node)

        if criteria.has_full_text:
            node = self.full_text_to_node(criteria.full_text.query)
            if node is not None:
                terms.append(node)

        if not terms:
            return None
        return terms[0] if len(terms) == 1 else And(*terms)

    def filter_to_node(self, criteria: FilterCriteria) -> Optional[Node]:
        """Translate one filter; unsupported operator/type combinations are dropped with a warning."""
        field_type = self.resolve_field_type(criteria)
        logger.info("Filter: %s %s %s", criteria.key, criteria.operator.value, criteria.value)
        try:
            return self._lower(criteria, field_type)
        except UnsupportedOperatorForTypeError as e:
            logger.warning("Dropping filter on '%s': %s", criteria.key, e)
            return None

    def full_text_to_node(self, query: str) -> Optional[Node]:
        """OR of case-insensitive substring matches across every STRING field."""
        fields = string_fields(self.filters)
        if not fields:
            logger.warning("Full-text search requested but no STRING fields are searchable; ignoring '%s'", query)
            return None
        logger.info("Full-text search: %s across %s", query, fields)
        matches = [TextMatch(field, query, "contains") for field in fields]
        return matches[0] if len(matches) == 1 else Or(*matches)

    def _check_supported(self, criteria: FilterCriteria, field_type: FieldType) -> None:
        operator = criteria.operator
        if operator in ORDERED_OPERATORS and field_type not in ORDERED_FIELD_TYPES:
            raise UnsupportedOperatorForTypeError(
                f"{operator.value} is only supported for number and date fields",
                key=criteria.key,
                operator=operator.value,
                field_type=field_type.value,
            )
        if operator in _TEXT_MODES and field_type != FieldType.STRING:
            raise UnsupportedOperatorForTypeError(
                f"{operator.value} is only supported for string fields",
                key=criteria.key,
                operator=operator.value,
                field_type=field_type.value,
            )

    def _check_values(self, criteria: FilterCriteria) -> None:
        if criteria.operator in _SINGLE_VALUE_OPERATORS and criteria.value is None:
            raise ValidationError(
                f"A value is required for operator {criteria.operator.value}",
                key=criteria.key,
                operator=criteria.operator.value,
            )
        if criteria.operator == FilterOperator.BETWEEN and criteria.value_to is None:
            raise ValidationError("BETWEEN requires both value and value_to", key=criteria.key)

    def _lower(self, criteria: FilterCriteria, field_type: FieldType) -> Node:
        self._check_supported(criteria, field_type)
        self._check_values(criteria)

        key = criteria.key
        operator = criteria.operator

        if operator == FilterOperator.EQUALS:
            if field_type == FieldType.DATE and is_date_without_time(criteria.value):
                start = parse(field_type, criteria.value)
                logger.debug("Widening date-only equality on '%s' to the whole day %s", key, start.date())
                return Range(key, start, start + WHOLE_DAY)
            return Compare(key, "eq", parse(field_type, criteria.value))
        if operator == FilterOperator.NOT_EQUALS:
            return Compare(key, "ne", parse(field_type, criteria.value))
        if operator == FilterOperator.LESS_THAN:
            return Compare(key, "lt", parse(field_type, criteria.value))
        if operator == FilterOperator.GREATER_THAN:
            return Compare(key, "gt", parse(field_type, criteria.value))
        if operator == FilterOperator.BETWEEN:
            return Range(key, parse(field_type, criteria.value), parse(field_type, criteria.value_to))
        if operator in (FilterOperator.IN, FilterOperator.NOT_IN):
            values = [parse(field_type, value) for value in criteria.values or []]
            return Compare(key, "in" if operator == FilterOperator.IN else "nin", values)
        if operator in _TEXT_MODES:
            match = TextMatch(key, str(criteria.value), _TEXT_MODES[operator])
            return Not(match) if operator == FilterOperator.NOT_CONTAINS else match
        if operator == FilterOperator.BLANK:
            if field_type == FieldType.STRING:
                return Or(IsNull(key), Compare(key, "eq", ""))
            return IsNull(key)
        if operator == FilterOperator.NOT_BLANK:
            if field_type == FieldType.STRING:
                return And(Not(IsNull(key)), Compare(key, "ne", ""))
            return Not(IsNull(key))
        raise ValidationError(f"Unknown operator {operator}", key=key)
