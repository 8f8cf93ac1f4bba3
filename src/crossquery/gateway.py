"""Inbound request layer.

Pydantic models for the shape of a search request as it arrives from an outer
surface (JSON body, CLI arguments, message payload), and :class:`SearchGateway`,
which validates that shape, maps it onto :class:`SearchCriteria` and delegates to
the :class:`SearchEngine`. Both snake_case and camelCase keys are accepted.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

import pydantic
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import FieldType, FilterOperator, SortDirection
from .engine import SearchEngine
from .exceptions import ValidationError
from .logger import Logger
from .schema import FilterCriteria, FullTextCriteria, PageCriteria, SearchCriteria, SearchResult, SortCriteria
from .settings import settings
from .types import EntityType

__all__ = (
    "FilterRequest",
    "FullTextRequest",
    "PageRequest",
    "SearchGateway",
    "SearchRequest",
    "SortRequest",
)

logger = Logger(__name__)

_REQUEST_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


def _require_key(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{what} key cannot be blank", field="key", value=value)
    return value


class FilterRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    key: str
    operator: FilterOperator = FilterOperator.EQUALS
    field_type: Optional[FieldType] = Field(None, validation_alias=AliasChoices("field_type", "fieldType"))
    value: Any = None
    value_to: Any = Field(None, validation_alias=AliasChoices("value_to", "valueTo"))
    values: Optional[List[Any]] = None

    @field_validator("key", mode="before")
    @classmethod
    def check_key(cls, value: Any) -> str:
        return _require_key(value, "Filter")

    @field_validator("operator", mode="before")
    @classmethod
    def coerce_operator(cls, value: Any) -> FilterOperator:
        if value is None:
            return FilterOperator.EQUALS
        try:
            return FilterOperator(value)
        except ValueError:
            raise ValidationError("Unknown filter operator", field="operator", value=value) from None

    @field_validator("field_type", mode="before")
    @classmethod
    def coerce_field_type(cls, value: Any) -> Optional[FieldType]:
        if value is None:
            return None
        try:
            return FieldType(value)
        except ValueError:
            raise ValidationError("Unknown field type", field="field_type", value=value) from None


class SortRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    key: str
    direction: SortDirection = SortDirection.ASC

    @field_validator("key", mode="before")
    @classmethod
    def check_key(cls, value: Any) -> str:
        return _require_key(value, "Sort")

    @field_validator("direction", mode="before")
    @classmethod
    def coerce_direction(cls, value: Any) -> SortDirection:
        if value is None:
            return SortDirection.ASC
        try:
            return SortDirection(value)
        except ValueError:
            raise ValidationError("Unknown sort direction", field="direction", value=value) from None


class PageRequest(BaseModel):
    """Paging as requested by a client (defaults to the first page of 20)."""

    model_config = _REQUEST_CONFIG

    number: int = 0
    size: int = 20

    @model_validator(mode="after")
    def check_bounds(self) -> "PageRequest":
        if self.number < 0:
            raise ValidationError("Page number must be greater than or equal to 0", field="number", value=self.number)
        if self.size < 1:
            raise ValidationError("Page size must be greater than or equal to 1", field="size", value=self.size)
        return self


class FullTextRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    query: str

    @field_validator("query", mode="before")
    @classmethod
    def check_query(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Full-text query cannot be blank", field="query", value=value)
        if len(value) > settings.FULL_TEXT_MAX_LENGTH:
            raise ValidationError(
                f"Full-text query must contain between 1 and {settings.FULL_TEXT_MAX_LENGTH} characters",
                field="query",
                length=len(value),
            )
        return value


class SearchRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    filters: List[FilterRequest] = Field(default_factory=list)
    sorts: List[SortRequest] = Field(default_factory=list)
    page: PageRequest = Field(default_factory=PageRequest)
    full_text: Optional[FullTextRequest] = Field(None, validation_alias=AliasChoices("full_text", "fullText"))

    @field_validator("filters", mode="before")
    @classmethod
    def check_filters(cls, value: Any) -> Any:
        if value is None:
            return []
        if len(value) > settings.SEARCH_MAX_FILTERS:
            raise ValidationError(
                f"The maximum number of filters is {settings.SEARCH_MAX_FILTERS}", field="filters", count=len(value)
            )
        return value

    @field_validator("sorts", mode="before")
    @classmethod
    def check_sorts(cls, value: Any) -> Any:
        if value is None:
            return []
        if len(value) > settings.SEARCH_MAX_SORTS:
            raise ValidationError(
                f"The maximum number of sorts is {settings.SEARCH_MAX_SORTS}", field="sorts", count=len(value)
            )
        return value

    @field_validator("page", mode="before")
    @classmethod
    def default_page(cls, value: Any) -> Any:
        return PageRequest() if value is None else value

    @field_validator("full_text", mode="before")
    @classmethod
    def coerce_full_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"query": value}
        return value


class SearchGateway:
    """Facade mapping inbound requests onto the engine.

    Args:
        engine: Engine holding the registrations
    """

    def __init__(self, engine: SearchEngine) -> None:
        self.engine = engine

    @staticmethod
    def parse_request(request: Union[SearchRequest, Mapping[str, Any], None]) -> SearchRequest:
        """Validate a raw request body.

        Raises:
            ValidationError: If the body does not have the expected shape
        """
        if isinstance(request, SearchRequest):
            return request
        try:
            return SearchRequest.model_validate(dict(request or {}))
        except pydantic.ValidationError as e:
            raise ValidationError("Malformed search request", errors=e.errors(include_url=False)) from e

    def to_criteria(self, request: SearchRequest, entity_type: EntityType) -> SearchCriteria:
        filters = [
            FilterCriteria(
                key=f.key,
                operator=f.operator,
                field_type=f.field_type or self.engine.resolve_field_type(entity_type, f.key),
                value=f.value,
                value_to=f.value_to,
                values=f.values,
            )
            for f in request.filters
        ]
        return SearchCriteria(
            filters=filters,
            sorts=[SortCriteria(key=s.key, direction=s.direction) for s in request.sorts],
            full_text=FullTextCriteria(query=request.full_text.query) if request.full_text else None,
            page=PageCriteria(number=request.page.number, size=request.page.size),
        )

    def search(
        self, request: Union[SearchRequest, Mapping[str, Any], None], entity_type: EntityType
    ) -> SearchResult[Any]:
        """Validate ``request``, map it to criteria and search ``entity_type``."""
        criteria = self.to_criteria(self.parse_request(request), entity_type)
        logger.debug("Gateway search on %s: %s", getattr(entity_type, "__name__", entity_type), criteria)
        return self.engine.search(criteria, entity_type)

    def get_available_filters(self, entity_type: EntityType) -> List[Dict[str, Any]]:
        """JSON-ready filter descriptors of ``entity_type`` (``[]`` when unregistered)."""
        return [
            {
                "key": d.key,
                "field_type": d.field_type.value,
                "nullable": d.nullable,
                "available_operators": sorted(op.value for op in d.available_operators),
            }
            for d in self.engine.get_available_filters(entity_type)
        ]
