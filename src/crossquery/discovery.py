"""Searchable entity discovery.

Entities opt in with the :func:`searchable_entity` class decorator, which records
them in a module-level catalogue. At startup the host runs an
:class:`EntityRegistrationProcessor` once; it creates a repository for every
catalogued class through an ``adapter_factory`` and registers it with the engine.

Example:
    >>> @searchable_entity(backend="postgres")
    ... class OperatingSystem(BaseModel):
    ...     name: str
    >>> processor = EntityRegistrationProcessor(engine, lambda t, backend: PostgresRepository(t))
    >>> processor.run()
    1
"""

import inspect
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from .abc import EntityRepository
from .engine import SearchEngine
from .logger import Logger
from .types import EntityType

__all__ = (
    "AdapterFactory",
    "EntityRegistrationProcessor",
    "OneShotLatch",
    "clear_catalogue",
    "searchable_entities",
    "searchable_entity",
)

logger = Logger(__name__)

C = TypeVar("C", bound=type)

# Builds the repository for one entity type; receives the backend tag when it accepts two arguments
AdapterFactory = Callable[..., EntityRepository]

_catalogue: Dict[EntityType, Optional[str]] = {}
_catalogue_lock = threading.Lock()


def searchable_entity(cls: Optional[C] = None, *, backend: Optional[str] = None) -> Any:
    """Class decorator marking an entity type for registration.

    Usable bare (``@searchable_entity``) or with a backend tag
    (``@searchable_entity(backend="mongo")``).
    """

    def mark(klass: C) -> C:
        with _catalogue_lock:
            _catalogue[klass] = backend
        return klass

    if cls is not None:
        return mark(cls)
    return mark


def searchable_entities() -> List[Tuple[EntityType, Optional[str]]]:
    """Catalogued ``(entity_type, backend)`` pairs in decoration order."""
    with _catalogue_lock:
        return list(_catalogue.items())


def clear_catalogue() -> None:
    with _catalogue_lock:
        _catalogue.clear()


class OneShotLatch:
    """A flag that can be tripped exactly once, from any thread."""

    def __init__(self) -> None:
        self._tripped = False
        self._lock = threading.Lock()

    @property
    def tripped(self) -> bool:
        return self._tripped

    def try_trip(self) -> bool:
        """Compare-and-set false -> true; returns True only for the caller that tripped it."""
        with self._lock:
            if self._tripped:
                return False
            self._tripped = True
            return True


class EntityRegistrationProcessor:
    """Registers every catalogued entity once, however often :meth:`run` is triggered.

    Args:
        engine: Engine receiving the registrations
        adapter_factory: ``factory(entity_type)`` or ``factory(entity_type, backend)``
            returning the repository for that type; the backend tag is passed when the
            factory has a ``backend`` parameter or two required positional ones
        entities: Explicit ``(entity_type, backend)`` pairs; the decorator catalogue when omitted
    """

    def __init__(
        self,
        engine: SearchEngine,
        adapter_factory: AdapterFactory,
        entities: Optional[List[Tuple[EntityType, Optional[str]]]] = None,
    ) -> None:
        self.engine = engine
        self.adapter_factory = adapter_factory
        self.entities = entities
        self.latch = OneShotLatch()
        self._factory_takes_backend = _accepts_two_arguments(adapter_factory)

    def _build_adapter(self, entity_type: EntityType, backend: Optional[str]) -> EntityRepository:
        if self._factory_takes_backend:
            return self.adapter_factory(entity_type, backend)
        return self.adapter_factory(entity_type)

    def run(self) -> int:
        """Scan and register; returns how many entities were registered (0 on repeat calls)."""
        if not self.latch.try_trip():
            logger.debug("Entity registration already performed; skipping")
            return 0

        entities = self.entities if self.entities is not None else searchable_entities()
        logger.info("Registering %d searchable entities", len(entities))
        registered = 0
        for entity_type, backend in entities:
            try:
                self.engine.register_entity(entity_type, self._build_adapter(entity_type, backend))
                registered += 1
            except Exception as e:
                logger.error("Failed to register searchable entity %s: %s", entity_type.__name__, e)
        logger.info("Registered %d of %d searchable entities", registered, len(entities))
        return registered


def _accepts_two_arguments(fn: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return False
    parameters = signature.parameters
    backend = parameters.get("backend")
    if backend is not None and backend.kind != inspect.Parameter.KEYWORD_ONLY:
        return True
    # Optional positionals do not opt in to the backend tag
    required = [
        p
        for p in parameters.values()
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    ]
    has_varargs = any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in parameters.values())
    return has_varargs or len(required) >= 2
