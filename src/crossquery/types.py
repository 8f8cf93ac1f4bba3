"""Type aliases for the crossquery package.

Reusable type definitions shared by the registry, the compilers and the
repository adapters.
"""

from typing import Any, Callable, Dict, Type, TypeVar

T = TypeVar("T")

# Entity types are plain Python classes (pydantic models, dataclasses, annotated classes)
EntityType = Type[Any]

# A raw row/document/hit as returned by a backend driver
Row = Dict[str, Any]

# Converts a raw row into the entity instance handed back to callers
RowMapper = Callable[[Row], Any]
