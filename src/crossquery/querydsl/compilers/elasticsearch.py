"""Elasticsearch where compiler.

Lowers predicate trees into Elasticsearch query DSL.

Lowering:
- Compare: term, terms, range (gt/gte/lt/lte); ne/nin as bool.must_not
- Range: range with gte/lte
- TextMatch: case-insensitive wildcard, `*` and `?` escaped
- IsNull: bool.must_not exists
- Logical: bool.must, bool.should (minimum_should_match 1), bool.must_not

Text values are matched against the keyword sub-field of the field
(`ELASTICSEARCH_KEYWORD_SUFFIX`, `.keyword` by default) so that term and
wildcard queries see the un-analyzed value.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from ...settings import settings
from ..q import And, Compare, IsNull, Node, Not, Or, Range, TextMatch
from .base import BaseWhere
from .utils import normalize_where_input, wildcard_pattern

__all__ = (
    "ElasticsearchWhereCompiler",
    "elasticsearch_where",
    "to_json_value",
)


def to_json_value(value: Any) -> Any:
    """Convert a parsed scalar into a JSON-encodable query value."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value


class ElasticsearchWhereCompiler(BaseWhere):
    """Compile predicate trees into Elasticsearch `bool` queries.

    Args:
        keyword_suffix: Sub-field appended to text fields for exact and wildcard
            clauses. Defaults to ``settings.ELASTICSEARCH_KEYWORD_SUFFIX``.
    """

    _RANGE_OPS = {"gt": "gt", "gte": "gte", "lt": "lt", "lte": "lte"}

    def __init__(self, keyword_suffix: Optional[str] = None):
        self.keyword_suffix = settings.ELASTICSEARCH_KEYWORD_SUFFIX if keyword_suffix is None else keyword_suffix

    def keyword_field(self, field: str) -> str:
        """Name of the un-analyzed variant of ``field``."""
        return field + self.keyword_suffix

    def to_where(self, where: Optional[Node]) -> Dict[str, Any]:
        """Convert a predicate tree to an Elasticsearch query.

        Args:
            where: Predicate tree, or None for no filtering

        Returns:
            Query DSL dict; ``{"match_all": {}}`` when there is nothing to filter
        """
        node = normalize_where_input(where)
        if node is None:
            return {"match_all": {}}
        return self._node_to_query(node)

    def to_expr(self, where: Optional[Node]) -> str:
        """Convert a predicate tree to string representation for debugging."""
        return str(self.to_where(where))

    def _term_field(self, field: str, value: Any) -> str:
        # Only text values have a keyword sub-field
        sample = value[0] if isinstance(value, (list, tuple)) and value else value
        return self.keyword_field(field) if isinstance(sample, str) else field

    def _node_to_query(self, node: Node) -> Dict[str, Any]:
        """Recursively transform node into query DSL."""
        if isinstance(node, And):
            return {"bool": {"must": [self._node_to_query(n) for n in node.children]}}
        if isinstance(node, Or):
            return {
                "bool": {
                    "should": [self._node_to_query(n) for n in node.children],
                    "minimum_should_match": 1,
                }
            }
        if isinstance(node, Not):
            return {"bool": {"must_not": [self._node_to_query(node.child)]}}
        if isinstance(node, Compare):
            return self._compare_to_query(node)
        if isinstance(node, Range):
            return {"range": {node.field: {"gte": to_json_value(node.lo), "lte": to_json_value(node.hi)}}}
        if isinstance(node, TextMatch):
            return {
                "wildcard": {
                    self.keyword_field(node.field): {
                        "value": wildcard_pattern(node.pattern, node.mode),
                        "case_insensitive": True,
                    }
                }
            }
        if isinstance(node, IsNull):
            return {"bool": {"must_not": [{"exists": {"field": node.field}}]}}
        raise TypeError(f"Unsupported node type: {type(node).__name__}")

    def _compare_to_query(self, node: Compare) -> Dict[str, Any]:
        field = self._term_field(node.field, node.value)
        value = to_json_value(node.value)
        if node.op == "eq":
            return {"term": {field: value}}
        if node.op == "ne":
            return {"bool": {"must_not": [{"term": {field: value}}]}}
        if node.op == "in":
            return {"terms": {field: list(value)}}
        if node.op == "nin":
            return {"bool": {"must_not": [{"terms": {field: list(value)}}]}}
        return {"range": {node.field: {self._RANGE_OPS[node.op]: value}}}


elasticsearch_where = ElasticsearchWhereCompiler()
