from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from crossquery.abc import EntityRepository
from crossquery.querydsl.q import And, Compare, IsNull, Node, Not, Or, Range, TextMatch
from crossquery.schema import SearchCriteria, SortCriteria


class InMemoryRepository(EntityRepository):
    """Simple in-memory repository to test the predicate tree without external backends.

    - Stores rows as plain dicts holding native values (datetime, int, str...)
    - Evaluates the neutral predicate tree directly
    - Supports multi-key sorting and zero-based paging
    - Records every compiled query for assertions
    """

    backend = "inmemory"

    def __init__(self, entity_type: type, rows: Optional[Iterable[Dict[str, Any]]] = None, **kwargs: Any) -> None:
        super().__init__(entity_type, **kwargs)
        self.rows: List[Dict[str, Any]] = [dict(r) for r in rows or []]
        self.queries: List[Tuple[Optional[Node], SearchCriteria]] = []

    @property
    def client(self) -> Any:
        return self.rows

    def compile(self, criteria: SearchCriteria) -> Tuple[Optional[Node], SearchCriteria]:
        query = (self.build_predicate(criteria), criteria)
        self.queries.append(query)
        return query

    def execute(self, query: Tuple[Optional[Node], SearchCriteria]) -> Tuple[List[Dict[str, Any]], int]:
        node, criteria = query
        items = [r for r in self.rows if node is None or evaluate(node, r)]
        items = sort_rows(items, criteria.sorts)
        start = criteria.page.offset
        return items[start : start + criteria.page.size], len(items)


def evaluate(node: Node, row: Dict[str, Any]) -> bool:
    if isinstance(node, And):
        return all(evaluate(child, row) for child in node.children)
    if isinstance(node, Or):
        return any(evaluate(child, row) for child in node.children)
    if isinstance(node, Not):
        return not evaluate(node.child, row)
    if isinstance(node, IsNull):
        return row.get(node.field) is None
    val = row.get(node.field)
    if isinstance(node, Range):
        return val is not None and node.lo <= val <= node.hi
    if isinstance(node, TextMatch):
        if val is None:
            return False
        text, pattern = str(val).lower(), node.pattern.lower()
        if node.mode == "starts_with":
            return text.startswith(pattern)
        if node.mode == "ends_with":
            return text.endswith(pattern)
        return pattern in text
    if isinstance(node, Compare):
        if node.op == "eq":
            return val == node.value
        if node.op == "ne":
            return val != node.value
        if node.op == "in":
            return val in node.value
        if node.op == "nin":
            return val not in node.value
        if val is None:
            return False
        if node.op == "gt":
            return val > node.value
        if node.op == "gte":
            return val >= node.value
        if node.op == "lt":
            return val < node.value
        if node.op == "lte":
            return val <= node.value
    raise TypeError(f"Unsupported node type: {type(node).__name__}")


def sort_rows(rows: List[Dict[str, Any]], sorts: List[SortCriteria]) -> List[Dict[str, Any]]:
    # Stable sorts applied from the least to the most significant key
    result = list(rows)
    for s in reversed(sorts):
        present = [r for r in result if r.get(s.key) is not None]
        missing = [r for r in result if r.get(s.key) is None]
        present.sort(key=lambda r: r[s.key], reverse=s.descending)
        result = present + missing
    return result
