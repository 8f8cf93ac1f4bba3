"""Concrete adapter for Elasticsearch.

This module provides the search-index implementation of the EntityRepository
interface using the official ``elasticsearch`` client. Criteria become a ``bool``
query; text fields are matched and sorted on their keyword sub-field; paging uses
``from``/``size`` with exact hit counting.
"""

from typing import Any, Dict, List, Optional, Tuple

from elasticsearch import ApiError, Elasticsearch, TransportError

from crossquery.abc import EntityRepository
from crossquery.constants import FieldType
from crossquery.exceptions import BackendExecutionError, MissingConfigError
from crossquery.querydsl.compilers.elasticsearch import ElasticsearchWhereCompiler, elasticsearch_where
from crossquery.schema import SearchCriteria, SortCriteria
from crossquery.settings import settings as api_settings
from crossquery.types import EntityType, Row
from crossquery.utils import default_collection_name, promote_id


class ElasticsearchRepository(EntityRepository):
    """Entity repository for Elasticsearch.

    Attributes:
        index_name: Index holding the entity (snake_case class name by default)
    """

    backend = "elasticsearch"
    where_compiler: ElasticsearchWhereCompiler = elasticsearch_where

    def __init__(
        self,
        entity_type: EntityType,
        index_name: Optional[str] = None,
        keyword_suffix: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(entity_type, **kwargs)
        self.index_name = index_name or default_collection_name(entity_type)
        if keyword_suffix is not None:
            self.where_compiler = ElasticsearchWhereCompiler(keyword_suffix=keyword_suffix)

    @property
    def client(self) -> Any:
        """Lazily initialize and return the Elasticsearch client.

        Raises:
            MissingConfigError: If ELASTICSEARCH_URL is not configured
        """
        if self._client is None:
            url = api_settings.ELASTICSEARCH_URL
            if not url:
                raise MissingConfigError(
                    "ELASTICSEARCH_URL is not set. Set it via environment variable or .env file.",
                    config_key="ELASTICSEARCH_URL",
                    adapter="Elasticsearch",
                )
            options: Dict[str, Any] = {}
            if api_settings.ELASTICSEARCH_API_KEY:
                options["api_key"] = api_settings.ELASTICSEARCH_API_KEY
            self._client = Elasticsearch(url, **options)
            self.logger.message("Elasticsearch client created for %s.", url)
        return self._client

    # ------------------------------------------------------------------
    # Search pipeline
    # ------------------------------------------------------------------

    def sort_spec(self, sorts: List[SortCriteria]) -> List[Dict[str, Any]]:
        text_fields = {d.key for d in self.filters if d.field_type == FieldType.STRING}
        spec = []
        for s in sorts:
            name = self.where_compiler.keyword_field(s.key) if s.key in text_fields else s.key
            spec.append({name: {"order": s.direction.value}})
        return spec

    def compile(self, criteria: SearchCriteria) -> Dict[str, Any]:
        """Lower criteria into a search request body."""
        body: Dict[str, Any] = {
            "query": self.where_compiler.to_where(self.build_predicate(criteria)),
            "from": criteria.page.offset,
            "size": criteria.page.size,
            "track_total_hits": True,
        }
        if criteria.sorts:
            body["sort"] = self.sort_spec(criteria.sorts)
        return body

    def execute(self, query: Dict[str, Any]) -> Tuple[List[Row], int]:
        params = dict(query)
        params["from_"] = params.pop("from")
        try:
            response = self.client.search(index=self.index_name, **params)
        except (ApiError, TransportError) as e:
            raise BackendExecutionError(
                "Elasticsearch query failed",
                backend=self.backend,
                index=self.index_name,
                original_error=str(e),
            ) from e
        hits = response["hits"]
        total = hits["total"]
        total = total["value"] if isinstance(total, dict) else int(total)
        rows = [promote_id(hit.get("_source") or {}, value=hit.get("_id")) for hit in hits["hits"]]
        self.logger.debug("Elasticsearch query: %s -> %d rows of %d", query["query"], len(rows), total)
        return rows, total
