"""
This __init__.py file makes the crossquery directory a Python package
and exposes the main `SearchEngine`, the criteria schema and the entity
metadata markers for easy access.
"""

from .abc import EntityRepository
from .constants import FieldType, FilterOperator, SortDirection
from .engine import SearchEngine
from .metadata import Searchable, SearchableExclude, Transient, extract_filters
from .schema import (
    FilterCriteria,
    FilterDescriptor,
    FullTextCriteria,
    PageCriteria,
    SearchCriteria,
    SearchResult,
    SortCriteria,
)

__version__ = "0.1.0"

__all__ = [
    "SearchEngine",
    "EntityRepository",
    "FieldType",
    "FilterOperator",
    "SortDirection",
    "FilterCriteria",
    "FilterDescriptor",
    "FullTextCriteria",
    "PageCriteria",
    "SearchCriteria",
    "SearchResult",
    "SortCriteria",
    "Searchable",
    "SearchableExclude",
    "Transient",
    "extract_filters",
]
