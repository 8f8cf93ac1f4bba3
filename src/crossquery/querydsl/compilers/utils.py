"""Compiler utility functions.

Provides helpers for validating compiler input, quoting identifiers, formatting
SQL values and escaping wildcard patterns.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional, Tuple, Union

from ..q import Node

# Characters with wildcard meaning inside an Elasticsearch wildcard pattern
_WILDCARD_SPECIALS = re.compile(r"([\\*?])")
# Characters with wildcard meaning inside a SQL LIKE pattern (backslash is the default escape)
_LIKE_SPECIALS = re.compile(r"([\\%_])")


def normalize_where_input(where: Any) -> Optional[Node]:
    """Validate compiler input.

    Args:
        where: Predicate tree or ``None`` (no filtering)

    Returns:
        The node unchanged

    Raises:
        TypeError: If input is neither a Node nor None
    """
    if where is None or isinstance(where, Node):
        return where
    raise TypeError(f"where parameter must be a Node or None, got {type(where).__name__}")


def quote_identifier(name: str) -> str:
    """Quote SQL identifier with double quotes.

    Handles dotted paths (``schema.table``) by quoting each segment separately.
    """
    return ".".join('"' + part.replace('"', '""') + '"' for part in name.split("."))


def format_value_sql(v: Union[None, str, int, float, Decimal, datetime, List[Any], Tuple[Any, ...]]) -> str:
    """Format Python value for SQL literal embedding.

    Only used for readable expressions; execution always binds parameters.
    """
    if v is None:
        return "NULL"
    if isinstance(v, bool):
        return "TRUE" if v else "FALSE"
    if isinstance(v, str):
        return "'" + v.replace("'", "''") + "'"
    if isinstance(v, datetime):
        return "'" + v.isoformat() + "'"
    if isinstance(v, (list, tuple)):
        inner = ", ".join(format_value_sql(x) for x in v)
        return f"({inner})"
    return str(v)


def like_pattern(text: str, mode: str) -> str:
    """Build a LIKE pattern for a literal substring/prefix/suffix match."""
    escaped = _LIKE_SPECIALS.sub(r"\\\1", text)
    if mode == "starts_with":
        return escaped + "%"
    if mode == "ends_with":
        return "%" + escaped
    return "%" + escaped + "%"


def regex_pattern(text: str, mode: str) -> str:
    """Build an anchored regular expression for a literal substring/prefix/suffix match."""
    escaped = re.escape(text)
    if mode == "starts_with":
        return "^" + escaped
    if mode == "ends_with":
        return escaped + "$"
    return escaped


def wildcard_pattern(text: str, mode: str) -> str:
    """Build an Elasticsearch wildcard pattern for a literal substring/prefix/suffix match."""
    escaped = _WILDCARD_SPECIALS.sub(r"\\\1", text)
    if mode == "starts_with":
        return escaped + "*"
    if mode == "ends_with":
        return "*" + escaped
    return "*" + escaped + "*"
