"""Query DSL module.

Exports the predicate tree nodes used to build composable, backend-agnostic
filter expressions, and the builder that derives them from search criteria.
Compiled representations are handled by the `compilers` subpackage.
"""

from .builder import CriteriaBuilder
from .q import And, Compare, IsNull, Node, Not, Or, Q, Range, TextMatch

__all__ = (
    "And",
    "Compare",
    "CriteriaBuilder",
    "IsNull",
    "Node",
    "Not",
    "Or",
    "Q",
    "Range",
    "TextMatch",
)
