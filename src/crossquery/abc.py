"""Abstract base class for repository adapters.

Every storage backend implements :class:`EntityRepository`. The adapter owns the
three phases of a search: ``compile`` criteria into a native query, ``execute`` it
and ``map_result`` into a :class:`~crossquery.schema.SearchResult`.
``find_by_criteria`` chains them and is the only operation the engine calls.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Tuple

from .logger import Logger
from .metadata import extract_filters
from .querydsl.builder import CriteriaBuilder
from .querydsl.compilers.base import BaseWhere
from .querydsl.q import Node
from .schema import FilterDescriptor, SearchCriteria, SearchResult
from .types import EntityType, Row, RowMapper
from .utils import row_to_entity

__all__ = ("EntityRepository",)


class EntityRepository(ABC):
    """Abstract base class for one entity type stored in one backend.

    Attributes:
        entity_type: The entity class rows are mapped to
        backend: Short backend name, used in logs and errors
        where_compiler: Compiler lowering predicate trees for this backend
    """

    backend: str = "generic"
    where_compiler: BaseWhere

    def __init__(
        self,
        entity_type: EntityType,
        filters: Optional[Iterable[FilterDescriptor]] = None,
        row_mapper: Optional[RowMapper] = None,
        client: Any = None,
        logger: Optional[Logger] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the adapter.

        Args:
            entity_type: Entity class searched by this adapter
            filters: Filter descriptors; extracted from ``entity_type`` when omitted
            row_mapper: Converts a raw row to the returned item; maps onto ``entity_type`` by default
            client: Pre-built driver client; created lazily from settings when omitted
            logger: Optional logger instance
            **kwargs: Backend-specific options
        """
        self.entity_type = entity_type
        self._filters: Optional[Tuple[FilterDescriptor, ...]] = tuple(filters) if filters is not None else None
        self.row_mapper = row_mapper
        self._client = client
        self._logger = logger if isinstance(logger, Logger) else Logger(self.__class__.__name__)

    @property
    def logger(self) -> Logger:
        return self._logger

    @property
    def filters(self) -> Tuple[FilterDescriptor, ...]:
        """Filter descriptors of the entity (extracted on first use)."""
        if self._filters is None:
            self._filters = extract_filters(self.entity_type)
        return self._filters

    @property
    def builder(self) -> CriteriaBuilder:
        return CriteriaBuilder(self.filters)

    @property
    @abstractmethod
    def client(self) -> Any:
        """Native driver client, created lazily."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Search pipeline
    # ------------------------------------------------------------------

    def build_predicate(self, criteria: SearchCriteria) -> Optional[Node]:
        """Translate criteria into the backend-neutral predicate tree."""
        return self.builder.build(criteria)

    @abstractmethod
    def compile(self, criteria: SearchCriteria) -> Any:
        """Translate criteria into an executable native query."""
        raise NotImplementedError

    @abstractmethod
    def execute(self, query: Any) -> Tuple[List[Row], int]:
        """Run a compiled query.

        Returns:
            The page of raw rows and the total number of matching rows

        Raises:
            BackendExecutionError: If the storage engine rejects or fails the query
        """
        raise NotImplementedError

    def map_row(self, row: Row) -> Any:
        if self.row_mapper is not None:
            return self.row_mapper(row)
        return row_to_entity(self.entity_type, row)

    def map_result(self, raw: Tuple[List[Row], int], criteria: SearchCriteria) -> SearchResult[Any]:
        """Convert a native page into a :class:`SearchResult`."""
        rows, total = raw
        return SearchResult.from_page(
            content=[self.map_row(row) for row in rows],
            page_number=criteria.page.number,
            page_size=criteria.page.size,
            total_elements=total,
            sorts=criteria.sorts,
        )

    def find_by_criteria(self, criteria: Optional[SearchCriteria] = None) -> SearchResult[Any]:
        """Compile, execute and map one search."""
        criteria = criteria if criteria is not None else SearchCriteria()
        query = self.compile(criteria)
        raw = self.execute(query)
        result = self.map_result(raw, criteria)
        self.logger.debug(
            "%s search on %s returned %d of %d rows",
            self.backend,
            self.entity_type.__name__,
            len(result.content),
            result.total_elements,
        )
        return result
