"""Base compiler interface.

Defines the abstract contract all backend-specific where compilers must follow.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..q import Node

__all__ = ("BaseWhere",)


class BaseWhere(ABC):
    """Abstract base class for where clause compilers.

    Subclasses implement `to_where` and `to_expr` to lower a predicate tree into
    backend-specific filter structures. Compilers hold no per-call state, so a
    single module-level instance is shared by every search.
    """

    @abstractmethod
    def to_where(self, node: Optional[Node]) -> Any:
        """
        Convert a predicate tree into backend-native filter representation.
        - (sql, params) for PostgreSQL
        - dict for MongoDB and Elasticsearch
        ``None`` means "no filtering" and yields the backend's match-everything form.
        """
        raise NotImplementedError

    @abstractmethod
    def to_expr(self, node: Optional[Node]) -> str:
        """Convert a predicate tree into a readable string for logging and debugging."""
        raise NotImplementedError
