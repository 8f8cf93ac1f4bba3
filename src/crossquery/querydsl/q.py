"""Query DSL core.

This module defines the backend-neutral predicate tree that every search is
expressed in before it reaches a storage engine. A tree is built once (usually by
:class:`~crossquery.querydsl.builder.CriteriaBuilder`) and then lowered by a
backend compiler into SQL, a Mongo query document or an Elasticsearch ``bool``
query.

Typical usage:

- Build filters: `Compare("age", "gte", 18) & Compare("age", "lte", 30)`
- Shorthand: `Q(age__gte=18, name="Ubuntu")`
- Negate: `~TextMatch("name", "win")`
- Compile: `node.to_where("postgres")` or `node.to_expr("elasticsearch")`
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Literal, Optional, Tuple

if TYPE_CHECKING:
    from .compilers.base import BaseWhere

BackendType = Literal["generic", "postgres", "mongo", "elasticsearch"]

__all__ = (
    "And",
    "BackendType",
    "Compare",
    "IsNull",
    "Node",
    "Not",
    "Or",
    "Q",
    "Range",
    "TextMatch",
)


class Node:
    """Composable boolean predicate.

    - Use `&` to combine with logical AND.
    - Use `|` to combine with logical OR.
    - Use `~` to negate a node.

    Nodes are immutable; combining always returns a new node.
    """

    __slots__ = ()

    def __and__(self, other: "Node") -> "And":
        """Return a new node representing logical AND of two nodes."""
        return And(*_flatten(And, self, other))

    def __or__(self, other: "Node") -> "Or":
        """Return a new node representing logical OR of two nodes."""
        return Or(*_flatten(Or, self, other))

    def __invert__(self) -> "Node":
        """Return the logical negation of this node (double negation collapses)."""
        if isinstance(self, Not):
            return self.child
        return Not(self)

    def __eq__(self, other: Any) -> bool:
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__, repr(self._key())))

    def __str__(self) -> str:
        """Human-friendly string form of the universal dict representation."""
        return str(self.to_dict())

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.to_dict()}>"

    def _key(self) -> Tuple[Any, ...]:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        """Return the universal dict representation of this node.

        - Leaves become `{field: {op: value}}` mappings.
        - Boolean combinations use `{"$and": [...]}`, `{"$or": [...]}`.
        - Negation wraps with `{"$not": node}`.
        """
        raise NotImplementedError

    # -------------------
    # Backend-specific expression/dict
    # -------------------

    def to_where(self, backend: BackendType = "generic") -> Any:
        """Compile to a backend-native "where" representation.

        - For `postgres`, returns a `(sql, params)` tuple.
        - For `mongo` and `elasticsearch`, returns a dict.
        - For `generic`, returns the universal dict.
        """
        where_compiler = _get_where_compiler(backend)
        if where_compiler:
            return where_compiler.to_where(self)
        return self.to_dict()

    def to_expr(self, backend: BackendType = "generic") -> str:
        """Compile to a string expression for debugging and logging."""
        where_compiler = _get_where_compiler(backend)
        if where_compiler:
            return where_compiler.to_expr(self)
        return str(self.to_dict())


class And(Node):
    __slots__ = ("children",)

    def __init__(self, *children: Node):
        self.children: Tuple[Node, ...] = tuple(children)

    def _key(self) -> Tuple[Any, ...]:
        return self.children

    def to_dict(self) -> Dict[str, Any]:
        return {"$and": [child.to_dict() for child in self.children]}


class Or(Node):
    __slots__ = ("children",)

    def __init__(self, *children: Node):
        self.children: Tuple[Node, ...] = tuple(children)

    def _key(self) -> Tuple[Any, ...]:
        return self.children

    def to_dict(self) -> Dict[str, Any]:
        return {"$or": [child.to_dict() for child in self.children]}


class Not(Node):
    __slots__ = ("child",)

    def __init__(self, child: Node):
        self.child = child

    def _key(self) -> Tuple[Any, ...]:
        return (self.child,)

    def to_dict(self) -> Dict[str, Any]:
        return {"$not": self.child.to_dict()}


class Compare(Node):
    """Binary comparison ``field <op> value``.

    `op` is one of: `eq`, `ne`, `gt`, `gte`, `lt`, `lte`, `in`, `nin`.
    For `in` / `nin` the value is a tuple of scalars.
    """

    __slots__ = ("field", "op", "value")

    OPS = ("eq", "ne", "gt", "gte", "lt", "lte", "in", "nin")

    def __init__(self, field: str, op: str, value: Any):
        if op not in self.OPS:
            raise ValueError(f"Unsupported comparison operator {op!r}. Supported: {', '.join(self.OPS)}")
        self.field = field
        self.op = op
        self.value = tuple(value) if op in ("in", "nin") else value

    def _key(self) -> Tuple[Any, ...]:
        return (self.field, self.op, self.value)

    def to_dict(self) -> Dict[str, Any]:
        value = list(self.value) if self.op in ("in", "nin") else self.value
        return {self.field: {f"${self.op}": value}}


class Range(Node):
    """Closed interval ``lo <= field <= hi``."""

    __slots__ = ("field", "lo", "hi")

    def __init__(self, field: str, lo: Any, hi: Any):
        self.field = field
        self.lo = lo
        self.hi = hi

    def _key(self) -> Tuple[Any, ...]:
        return (self.field, self.lo, self.hi)

    def to_dict(self) -> Dict[str, Any]:
        return {self.field: {"$gte": self.lo, "$lte": self.hi}}


class TextMatch(Node):
    """Case-insensitive literal substring, prefix or suffix match."""

    __slots__ = ("field", "pattern", "mode")

    MODES = ("contains", "starts_with", "ends_with")

    def __init__(self, field: str, pattern: str, mode: str = "contains"):
        if mode not in self.MODES:
            raise ValueError(f"Unsupported text match mode {mode!r}. Supported: {', '.join(self.MODES)}")
        self.field = field
        self.pattern = pattern
        self.mode = mode

    def _key(self) -> Tuple[Any, ...]:
        return (self.field, self.pattern, self.mode)

    def to_dict(self) -> Dict[str, Any]:
        return {self.field: {f"${self.mode}": self.pattern}}


class IsNull(Node):
    """Matches when the field is absent or holds no value."""

    __slots__ = ("field",)

    def __init__(self, field: str):
        self.field = field

    def _key(self) -> Tuple[Any, ...]:
        return (self.field,)

    def to_dict(self) -> Dict[str, Any]:
        return {self.field: {"$null": True}}


_LOOKUPS = set(Compare.OPS)
_TEXT_LOOKUPS = {"contains": "contains", "startswith": "starts_with", "endswith": "ends_with"}


def Q(**filters: Any) -> Node:
    """Shorthand for AND-ing leaf filters written as `field__lookup=value`.

    Lookups: the comparison operators, `contains`, `startswith`, `endswith`,
    `between` (a two-item sequence) and `isnull`. A key without a lookup means `eq`.
    """
    if not filters:
        raise ValueError("Q() requires at least one filter")
    nodes = []
    for key, value in filters.items():
        field, _, lookup = key.rpartition("__")
        if not field:
            field, lookup = key, "eq"
        if lookup in _LOOKUPS:
            nodes.append(Compare(field, lookup, value))
        elif lookup in _TEXT_LOOKUPS:
            nodes.append(TextMatch(field, value, _TEXT_LOOKUPS[lookup]))
        elif lookup == "between":
            lo, hi = value
            nodes.append(Range(field, lo, hi))
        elif lookup == "isnull":
            nodes.append(IsNull(field) if value else Not(IsNull(field)))
        else:
            # Unknown lookup: treat the whole key as the field name
            nodes.append(Compare(key, "eq", value))
    return nodes[0] if len(nodes) == 1 else And(*nodes)


def _flatten(kind: type, *nodes: Node) -> Tuple[Node, ...]:
    result = []
    for node in nodes:
        if type(node) is kind:
            result.extend(node.children)
        else:
            result.append(node)
    return tuple(result)


def _get_where_compiler(backend: BackendType) -> Optional[BaseWhere]:
    """Return the backend-specific where compiler, if any."""
    if backend == "postgres":
        from .compilers.postgres import postgres_where

        return postgres_where
    elif backend == "mongo":
        from .compilers.mongo import mongo_where

        return mongo_where
    elif backend == "elasticsearch":
        from .compilers.elasticsearch import elasticsearch_where

        return elasticsearch_where
    else:
        return None
