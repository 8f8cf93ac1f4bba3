"""PostgreSQL where compiler.

Lowers predicate trees into parameterized SQL WHERE clauses for psycopg2.

Lowering:
- Compare: =, <>, >, >=, <, <=, IN, NOT IN (empty IN is FALSE, empty NOT IN is TRUE)
- Range: col >= lo AND col <= hi
- TextMatch: UPPER(CAST(col AS TEXT)) LIKE UPPER(pattern), LIKE wildcards escaped
- IsNull: col IS NULL
- Logical: AND, OR, NOT

Comparisons against the empty string cast the column to TEXT so that blank
checks also compile for non-text columns.
"""

from typing import Any, Callable, List, Optional, Tuple

from ..q import And, Compare, IsNull, Node, Not, Or, Range, TextMatch
from .base import BaseWhere
from .utils import format_value_sql, like_pattern, normalize_where_input, quote_identifier

__all__ = (
    "PostgresWhereCompiler",
    "postgres_where",
)

Binder = Callable[[Any], str]


class PostgresWhereCompiler(BaseWhere):
    """Compile predicate trees into PostgreSQL WHERE clauses.

    Values are bound as %s placeholders.
    """

    # Operator mapping from predicate tree to PostgreSQL SQL syntax
    _OP_MAP = {
        "eq": "=",
        "ne": "<>",
        "gt": ">",
        "gte": ">=",
        "lt": "<",
        "lte": "<=",
        "in": "IN",
        "nin": "NOT IN",
    }

    def to_where(self, where: Optional[Node]) -> Tuple[str, List[Any]]:
        """Convert a predicate tree to a SQL WHERE clause.

        Args:
            where: Predicate tree, or None for no filtering

        Returns:
            ``(sql, params)``; ``("", [])`` when there is nothing to filter
        """
        node = normalize_where_input(where)
        params: List[Any] = []
        if node is None:
            return "", params

        def bind(value: Any) -> str:
            params.append(value)
            return "%s"

        return self._node_to_sql(node, bind), params

    def to_expr(self, where: Optional[Node]) -> str:
        """Convert a predicate tree to SQL with values inlined (for logging only)."""
        node = normalize_where_input(where)
        if node is None:
            return ""
        return self._node_to_sql(node, format_value_sql)

    def _node_to_sql(self, node: Node, bind: Binder) -> str:
        """Recursively transform node into SQL."""
        if isinstance(node, And):
            if not node.children:
                return "TRUE"
            return "(" + " AND ".join(self._node_to_sql(x, bind) for x in node.children) + ")"
        if isinstance(node, Or):
            if not node.children:
                return "FALSE"
            return "(" + " OR ".join(self._node_to_sql(x, bind) for x in node.children) + ")"
        if isinstance(node, Not):
            # A NULL comparison under NOT counts as no match, like $nor
            return "NOT COALESCE(" + self._node_to_sql(node.child, bind) + ", FALSE)"
        if isinstance(node, Compare):
            return self._compare_to_sql(node, bind)
        if isinstance(node, Range):
            ident = quote_identifier(node.field)
            return f"({ident} >= {bind(node.lo)} AND {ident} <= {bind(node.hi)})"
        if isinstance(node, TextMatch):
            ident = quote_identifier(node.field)
            return f"UPPER(CAST({ident} AS TEXT)) LIKE UPPER({bind(like_pattern(node.pattern, node.mode))})"
        if isinstance(node, IsNull):
            return f"{quote_identifier(node.field)} IS NULL"
        raise TypeError(f"Unsupported node type: {type(node).__name__}")

    def _compare_to_sql(self, node: Compare, bind: Binder) -> str:
        ident = quote_identifier(node.field)
        sql_op = self._OP_MAP[node.op]
        if node.op in ("in", "nin"):
            if not node.value:
                return "FALSE" if node.op == "in" else "TRUE"
            placeholders = ", ".join(bind(v) for v in node.value)
            return f"{ident} {sql_op} ({placeholders})"
        if node.value == "":
            ident = f"CAST({ident} AS TEXT)"
        return f"{ident} {sql_op} {bind(node.value)}"


postgres_where = PostgresWhereCompiler()
