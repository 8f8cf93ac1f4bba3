"""Concrete adapter for MongoDB.

This module provides the document-store implementation of the EntityRepository
interface using pymongo: criteria become a query document, sorts a key list and
paging a skip/limit window, with ``count_documents`` for the total.

Key Features:
    - Lazy MongoClient initialization from MONGO_URI
    - Case-insensitive regex matching on escaped literals
    - ``_id`` exposed as ``id`` on mapped rows
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from crossquery.abc import EntityRepository
from crossquery.exceptions import BackendExecutionError, MissingConfigError
from crossquery.querydsl.compilers.mongo import MongoWhereCompiler, mongo_where
from crossquery.schema import SearchCriteria, SortCriteria
from crossquery.settings import settings as api_settings
from crossquery.types import EntityType, Row
from crossquery.utils import default_collection_name, promote_id


@dataclass(frozen=True)
class MongoQuery:
    filter: Dict[str, Any] = field(default_factory=dict)
    sort: List[Tuple[str, int]] = field(default_factory=list)
    skip: int = 0
    limit: int = 0


class MongoRepository(EntityRepository):
    """Entity repository for MongoDB.

    Attributes:
        collection_name: Collection holding the entity (snake_case class name by default)
        database_name: Database name (``MONGO_DATABASE`` by default)
    """

    backend = "mongo"
    where_compiler: MongoWhereCompiler = mongo_where

    def __init__(
        self,
        entity_type: EntityType,
        collection_name: Optional[str] = None,
        database_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(entity_type, **kwargs)
        self.collection_name = collection_name or default_collection_name(entity_type)
        self.database_name = database_name or api_settings.MONGO_DATABASE

    @property
    def client(self) -> Any:
        """Lazily initialize and return the MongoClient.

        Raises:
            MissingConfigError: If MONGO_URI is not configured
        """
        if self._client is None:
            uri = api_settings.MONGO_URI
            if not uri:
                raise MissingConfigError(
                    "MONGO_URI is not set. Set it via environment variable or .env file.",
                    config_key="MONGO_URI",
                    adapter="Mongo",
                )
            self._client = MongoClient(uri)
            self.logger.message("MongoDB client created for database %s.", self.database_name)
        return self._client

    @property
    def collection(self) -> Any:
        if not self.database_name:
            raise MissingConfigError(
                "MONGO_DATABASE is not set. Set it via environment variable or .env file.",
                config_key="MONGO_DATABASE",
                adapter="Mongo",
            )
        return self.client[self.database_name][self.collection_name]

    # ------------------------------------------------------------------
    # Search pipeline
    # ------------------------------------------------------------------

    def sort_spec(self, sorts: List[SortCriteria]) -> List[Tuple[str, int]]:
        return [(s.key, DESCENDING if s.descending else ASCENDING) for s in sorts]

    def compile(self, criteria: SearchCriteria) -> MongoQuery:
        """Lower criteria into a query document and a page window."""
        return MongoQuery(
            filter=self.where_compiler.to_where(self.build_predicate(criteria)),
            sort=self.sort_spec(criteria.sorts),
            skip=criteria.page.offset,
            limit=criteria.page.size,
        )

    def execute(self, query: MongoQuery) -> Tuple[List[Row], int]:
        try:
            collection = self.collection
            total = collection.count_documents(query.filter)
            cursor = collection.find(query.filter)
            if query.sort:
                cursor = cursor.sort(query.sort)
            rows = [promote_id(doc) for doc in cursor.skip(query.skip).limit(query.limit)]
        except PyMongoError as e:
            raise BackendExecutionError(
                "MongoDB query failed",
                backend=self.backend,
                collection=self.collection_name,
                original_error=str(e),
            ) from e
        self.logger.debug("Mongo filter: %s -> %d rows of %d", query.filter, len(rows), total)
        return rows, total
