"""
Main engine for dispatching searches to registered entity repositories.

This module provides the `SearchEngine`, the single entry point hosts call:
entity types are registered once with a repository adapter, then searched by
type. The engine resolves unset filter field types from the entity's metadata
and hands the criteria to the adapter's compile/execute/map pipeline.
"""

from typing import Any, List, Optional

from .abc import EntityRepository
from .constants import FieldType
from .exceptions import FieldNotFoundError, NotRegisteredError
from .logger import Logger
from .metadata import extract_filters
from .registry import EntityRegistry, InMemoryEntityRegistry
from .schema import EntityRegistration, FilterDescriptor, SearchCriteria, SearchResult
from .types import EntityType


class SearchEngine:
    """Registry-backed dispatcher for criteria searches.

    Key Features:
        - Registration is idempotent: re-registering replaces the record wholesale
        - `search` fails loudly for unknown types, filter discovery degrades to `[]`
        - Safe for concurrent registration and search from many threads

    Attributes:
        registry: Registration store (in-memory by default)
    """

    def __init__(self, registry: Optional[EntityRegistry] = None) -> None:
        self.registry = registry if registry is not None else InMemoryEntityRegistry()
        self.logger = Logger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register_entity(self, entity_type: EntityType, repository: EntityRepository) -> EntityRegistration:
        """Register ``entity_type`` with the repository adapter that searches it.

        Args:
            entity_type: Entity class
            repository: Adapter implementing ``find_by_criteria``

        Returns:
            The stored registration record
        """
        registration = EntityRegistration(
            entity_type=entity_type,
            filters=extract_filters(entity_type),
            repository=repository,
        )
        self.registry.put(registration)
        self.logger.info(
            "Registered entity %s (%d filters) with %s",
            registration.entity_name,
            len(registration.filters),
            repository.__class__.__name__,
        )
        return registration

    def is_registered(self, entity_type: EntityType) -> bool:
        return entity_type in self.registry

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def search(self, criteria: Optional[SearchCriteria], entity_type: EntityType) -> SearchResult[Any]:
        """Run ``criteria`` against the repository registered for ``entity_type``.

        Raises:
            NotRegisteredError: If ``entity_type`` has no registration
        """
        registration = self.registry.get(entity_type)
        if registration is None:
            raise NotRegisteredError(
                "Entity not registered",
                entity=getattr(entity_type, "__name__", str(entity_type)),
            )
        criteria = criteria if criteria is not None else SearchCriteria()
        resolved = [
            f if f.field_type is not None else f.with_field_type(self._lookup(registration, f.key))
            for f in criteria.filters
        ]
        criteria = criteria.with_filters(resolved)
        self.logger.debug(
            "Searching %s with %d filters via %s",
            registration.entity_name,
            len(criteria.filters),
            registration.repository.__class__.__name__,
        )
        return registration.repository.find_by_criteria(criteria)

    # ------------------------------------------------------------------
    # Filter discovery
    # ------------------------------------------------------------------
    def get_available_filters(self, entity_type: EntityType) -> List[FilterDescriptor]:
        """Filter descriptors of ``entity_type``, or ``[]`` when it is not registered."""
        registration = self.registry.get(entity_type)
        if registration is None:
            return []
        return list(registration.filters)

    def resolve_field_type(self, entity_type: EntityType, key: str) -> FieldType:
        """Field type of ``key``; STRING when the entity or the field is unknown."""
        registration = self.registry.get(entity_type)
        if registration is None:
            return FieldType.STRING
        return self._lookup(registration, key)

    def get_field_type(self, entity_type: EntityType, key: str) -> FieldType:
        """Strict variant of :meth:`resolve_field_type`.

        Raises:
            NotRegisteredError: If ``entity_type`` has no registration
            FieldNotFoundError: If the entity has no filterable field ``key``
        """
        registration = self.registry.get(entity_type)
        if registration is None:
            raise NotRegisteredError("Entity not registered", entity=getattr(entity_type, "__name__", str(entity_type)))
        descriptor = registration.find_filter(key)
        if descriptor is None:
            raise FieldNotFoundError("Field not found", field=key, entity=registration.entity_name)
        return descriptor.field_type

    @staticmethod
    def _lookup(registration: EntityRegistration, key: str) -> FieldType:
        descriptor = registration.find_filter(key)
        return descriptor.field_type if descriptor is not None else FieldType.STRING
