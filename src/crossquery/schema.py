"""Pydantic schemas for the search criteria model.

These are the canonical, backend-neutral value objects: what a caller asks for
(:class:`SearchCriteria` and its parts), what an entity exposes
(:class:`FilterDescriptor`) and what every backend answers (:class:`SearchResult`).
"""

import math
from typing import Any, Callable, FrozenSet, Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import FieldType, FilterOperator, SortDirection
from .exceptions import ValidationError
from .settings import settings

T = TypeVar("T")
U = TypeVar("U")


class FilterDescriptor(BaseModel):
    """Metadata describing one filterable attribute of an entity type."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Logical field name used in filters and sorts.")
    field_type: FieldType = Field(..., description="Type driving parsing and legal operators.")
    nullable: bool = Field(True, description="Whether the attribute may hold no value.")
    available_operators: FrozenSet[FilterOperator] = Field(..., description="Operators legal for this field.")

    @model_validator(mode="before")
    @classmethod
    def check_invariants(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        key = data.get("key")
        if not isinstance(key, str) or not key.strip():
            raise ValidationError("Filter key cannot be null or blank", field="key", value=key)
        if data.get("field_type") is None:
            raise ValidationError("Field type cannot be null", field="field_type", key=key)
        if not data.get("available_operators"):
            raise ValidationError("Available operators cannot be null or empty", field="available_operators", key=key)
        return data

    @field_validator("field_type", mode="before")
    @classmethod
    def coerce_field_type(cls, value: Any) -> FieldType:
        return FieldType(value)

    @field_validator("available_operators", mode="before")
    @classmethod
    def coerce_operators(cls, value: Any) -> FrozenSet[FilterOperator]:
        return frozenset(FilterOperator(op) for op in value)

    def supports(self, operator: FilterOperator) -> bool:
        return FilterOperator(operator) in self.available_operators


class FilterCriteria(BaseModel):
    """A single filter: ``key operator value`` (``value_to`` for BETWEEN, ``values`` for IN)."""

    model_config = ConfigDict(frozen=True)

    key: str
    operator: FilterOperator = FilterOperator.EQUALS
    field_type: Optional[FieldType] = None
    value: Any = None
    value_to: Any = None
    values: Optional[List[Any]] = None

    @field_validator("operator", mode="before")
    @classmethod
    def coerce_operator(cls, value: Any) -> FilterOperator:
        return FilterOperator.EQUALS if value is None else FilterOperator(value)

    @field_validator("field_type", mode="before")
    @classmethod
    def coerce_field_type(cls, value: Any) -> Optional[FieldType]:
        return None if value is None else FieldType(value)

    def with_field_type(self, field_type: FieldType) -> "FilterCriteria":
        """Return a copy of this filter with ``field_type`` set."""
        return self.model_copy(update={"field_type": FieldType(field_type)})


class SortCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    direction: SortDirection = SortDirection.ASC

    @field_validator("direction", mode="before")
    @classmethod
    def coerce_direction(cls, value: Any) -> SortDirection:
        return SortDirection.ASC if value is None else SortDirection(value)

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESC


class FullTextCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """A full-text criterion only applies when its query holds non-blank text."""
        return self.query is not None and bool(self.query.strip())


class PageCriteria(BaseModel):
    """Zero-based page window."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(default_factory=lambda: settings.DEFAULT_PAGE_NUMBER)
    size: int = Field(default_factory=lambda: settings.DEFAULT_PAGE_SIZE)

    @field_validator("number", mode="before")
    @classmethod
    def default_number(cls, value: Any) -> Any:
        return settings.DEFAULT_PAGE_NUMBER if value is None else value

    @field_validator("size", mode="before")
    @classmethod
    def default_size(cls, value: Any) -> Any:
        return settings.DEFAULT_PAGE_SIZE if value is None else value

    @model_validator(mode="after")
    def check_bounds(self) -> "PageCriteria":
        if self.number < 0:
            raise ValidationError("Page number must be greater than or equal to 0", field="number", value=self.number)
        if self.size < 1:
            raise ValidationError("Page size must be greater than or equal to 1", field="size", value=self.size)
        return self

    @property
    def offset(self) -> int:
        return self.number * self.size


class SearchCriteria(BaseModel):
    """Aggregate of filters, sorts, full-text and paging. Collections are never ``None``."""

    model_config = ConfigDict(frozen=True)

    filters: List[FilterCriteria] = Field(default_factory=list)
    sorts: List[SortCriteria] = Field(default_factory=list)
    full_text: Optional[FullTextCriteria] = None
    page: PageCriteria = Field(default_factory=PageCriteria)

    @field_validator("filters", "sorts", mode="before")
    @classmethod
    def default_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("full_text", mode="before")
    @classmethod
    def coerce_full_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return FullTextCriteria(query=value)
        return value

    @field_validator("page", mode="before")
    @classmethod
    def default_page(cls, value: Any) -> Any:
        return PageCriteria() if value is None else value

    @property
    def has_full_text(self) -> bool:
        return self.full_text is not None and self.full_text.is_active

    def with_filters(self, filters: List[FilterCriteria]) -> "SearchCriteria":
        return self.model_copy(update={"filters": list(filters)})


class SearchResult(BaseModel, Generic[T]):
    """Uniform paginated answer produced by every backend."""

    content: List[T] = Field(default_factory=list)
    page_number: int = 0
    page_size: int = 0
    total_elements: int = 0
    total_pages: int = 0
    sorts: List[SortCriteria] = Field(default_factory=list)
    first: bool = True
    last: bool = True
    empty: bool = True

    @classmethod
    def empty_result(cls) -> "SearchResult[Any]":
        """The result returned when there is no backend page at all."""
        return cls(
            content=[],
            page_number=0,
            page_size=0,
            total_elements=0,
            total_pages=0,
            sorts=[],
            first=True,
            last=True,
            empty=True,
        )

    @classmethod
    def from_page(
        cls,
        content: List[Any],
        page_number: int,
        page_size: int,
        total_elements: int,
        sorts: Optional[List[SortCriteria]] = None,
    ) -> "SearchResult[Any]":
        """Build a result from one backend page and the backend's total count."""
        total_pages = math.ceil(total_elements / page_size) if page_size > 0 else 0
        return cls(
            content=list(content),
            page_number=page_number,
            page_size=page_size,
            total_elements=total_elements,
            total_pages=total_pages,
            sorts=list(sorts or []),
            first=page_number == 0,
            last=page_number + 1 >= total_pages,
            empty=not content,
        )

    def map(self, fn: Callable[[T], U]) -> "SearchResult[U]":
        """Return a copy whose content items have been transformed by ``fn``."""
        return SearchResult(
            content=[fn(item) for item in self.content],
            **self.model_dump(exclude={"content"}),
        )


class EntityRegistration(BaseModel):
    """Immutable registry record: an entity type, its filters and its repository adapter."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    entity_type: Any
    filters: Tuple[FilterDescriptor, ...] = ()
    repository: Any

    @property
    def entity_name(self) -> str:
        return getattr(self.entity_type, "__name__", str(self.entity_type))

    def find_filter(self, key: str) -> Optional[FilterDescriptor]:
        return next((descriptor for descriptor in self.filters if descriptor.key == key), None)
