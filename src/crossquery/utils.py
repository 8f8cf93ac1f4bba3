"""Utility functions for crossquery.

Shared helpers used by the repository adapters.
"""

import dataclasses
import re
from typing import Any

from pydantic import BaseModel

from .types import EntityType, Row

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


# ===========================================================================
# Naming
# ===========================================================================


def snake_case(name: str) -> str:
    """Convert a class name to snake_case (``OperatingSystem`` -> ``operating_system``)."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def default_collection_name(entity_type: EntityType) -> str:
    """Storage name for an entity: ``__tablename__`` when declared, else the snake_case class name."""
    explicit = getattr(entity_type, "__tablename__", None)
    if isinstance(explicit, str) and explicit:
        return explicit
    return snake_case(entity_type.__name__)


# ===========================================================================
# Row mapping
# ===========================================================================


def promote_id(row: Row, source_key: str = "_id", value: Any = None) -> Row:
    """Return a copy of ``row`` exposing the native document id as ``id``.

    The native key is removed; an existing ``id`` value is never overwritten.
    """
    item = dict(row)
    native = item.pop(source_key, None)
    if value is None:
        value = native
    if "id" not in item and value is not None:
        item["id"] = value if isinstance(value, (str, int)) else str(value)
    return item


def row_to_entity(entity_type: EntityType, row: Row) -> Any:
    """Map a raw row onto ``entity_type``.

    - pydantic models go through ``model_validate``.
    - dataclasses are constructed from the row's known fields.
    - anything else gets the raw dict back.
    """
    if isinstance(entity_type, type) and issubclass(entity_type, BaseModel):
        return entity_type.model_validate(row)
    if dataclasses.is_dataclass(entity_type):
        names = {f.name for f in dataclasses.fields(entity_type) if f.init}
        return entity_type(**{k: v for k, v in row.items() if k in names})
    return dict(row)
