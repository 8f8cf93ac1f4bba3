"""MongoDB where compiler.

Lowers predicate trees into pymongo query documents.

Lowering:
- Compare: $eq, $ne, $gt, $gte, $lt, $lte, $in, $nin
- Range: {"$gte": lo, "$lte": hi}
- TextMatch: {"$regex": escaped literal, "$options": "i"}
- IsNull: {field: None} (matches null and missing)
- Logical: $and, $or, and $nor for negation

Limitations:
- Decimal values are converted to bson.Decimal128
- `$ne` / `$nin` also match documents where the field is missing
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from bson.decimal128 import Decimal128

from ..q import And, Compare, IsNull, Node, Not, Or, Range, TextMatch
from .base import BaseWhere
from .utils import normalize_where_input, regex_pattern

__all__ = (
    "MongoWhereCompiler",
    "mongo_where",
    "to_bson_value",
)


def to_bson_value(value: Any) -> Any:
    """Convert a parsed scalar into a BSON-encodable value."""
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, (list, tuple)):
        return [to_bson_value(v) for v in value]
    return value


class MongoWhereCompiler(BaseWhere):
    """Compile predicate trees into MongoDB query documents.

    Nested fields are addressed with dot notation.
    """

    def to_where(self, where: Optional[Node]) -> Dict[str, Any]:
        """Convert a predicate tree to a MongoDB filter document.

        Args:
            where: Predicate tree, or None for no filtering

        Returns:
            Query document; ``{}`` matches every document
        """
        node = normalize_where_input(where)
        if node is None:
            return {}
        return self._node_to_dict(node)

    def to_expr(self, where: Optional[Node]) -> str:
        """Convert a predicate tree to string representation for debugging."""
        return str(self.to_where(where))

    def _node_to_dict(self, node: Node) -> Dict[str, Any]:
        """Recursively transform node into a MongoDB filter document."""
        if isinstance(node, And):
            return {"$and": [self._node_to_dict(n) for n in node.children]}
        if isinstance(node, Or):
            return {"$or": [self._node_to_dict(n) for n in node.children]}
        if isinstance(node, Not):
            return {"$nor": [self._node_to_dict(node.child)]}
        if isinstance(node, Compare):
            return {node.field: {f"${node.op}": to_bson_value(node.value)}}
        if isinstance(node, Range):
            return {node.field: {"$gte": to_bson_value(node.lo), "$lte": to_bson_value(node.hi)}}
        if isinstance(node, TextMatch):
            return {node.field: {"$regex": regex_pattern(node.pattern, node.mode), "$options": "i"}}
        if isinstance(node, IsNull):
            return {node.field: None}
        raise TypeError(f"Unsupported node type: {type(node).__name__}")


mongo_where = MongoWhereCompiler()
