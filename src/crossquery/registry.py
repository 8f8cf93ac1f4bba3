"""Entity registry.

Process-wide map from entity type to its :class:`EntityRegistration`. Writes
replace a whole immutable record under a lock; reads never take the lock.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .schema import EntityRegistration
from .types import EntityType

__all__ = ("EntityRegistry", "InMemoryEntityRegistry")


class EntityRegistry(ABC):
    """Storage contract for registrations."""

    @abstractmethod
    def put(self, registration: EntityRegistration) -> None:
        """Insert or replace the registration for its entity type."""
        raise NotImplementedError

    @abstractmethod
    def get(self, entity_type: EntityType) -> Optional[EntityRegistration]:
        raise NotImplementedError

    @abstractmethod
    def unregister(self, entity_type: EntityType) -> bool:
        """Remove a registration; returns whether one existed."""
        raise NotImplementedError

    @abstractmethod
    def entity_types(self) -> List[EntityType]:
        raise NotImplementedError

    def __contains__(self, entity_type: object) -> bool:
        return self.get(entity_type) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self.entity_types())


class InMemoryEntityRegistry(EntityRegistry):
    """Dict-backed registry safe for concurrent use.

    Each write rebinds a single key to a fully built frozen record, so a reader
    sees either the previous registration or the new one, never a partial one.
    """

    def __init__(self) -> None:
        self._registrations: Dict[EntityType, EntityRegistration] = {}
        self._lock = threading.Lock()

    def put(self, registration: EntityRegistration) -> None:
        with self._lock:
            self._registrations[registration.entity_type] = registration

    def get(self, entity_type: EntityType) -> Optional[EntityRegistration]:
        return self._registrations.get(entity_type)

    def unregister(self, entity_type: EntityType) -> bool:
        with self._lock:
            return self._registrations.pop(entity_type, None) is not None

    def entity_types(self) -> List[EntityType]:
        return list(self._registrations.copy())

    def __len__(self) -> int:
        return len(self._registrations)
