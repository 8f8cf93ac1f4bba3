"""Field metadata extraction.

Derives, for an entity type, the ordered list of :class:`FilterDescriptor`
values describing which attributes are filterable and with which operators.

Extraction policy:
    1. An attribute annotated ``Annotated[..., SearchableExclude()]`` is skipped.
    2. ``ClassVar`` (static) and transient attributes are skipped. Transient means
       ``Annotated[..., Transient()]``, a private (underscore) name, or a dataclass
       field declared with ``metadata={"transient": True}``.
    3. Collections and mappings are skipped.
    4. ``Annotated[..., Searchable(FieldType.X, nullable=..., field_name=...)]`` is used verbatim.
    5. Otherwise the field type is auto-detected from the Python type; unsupported
       types are silently omitted.

Example:
    >>> class OperatingSystem(BaseModel):
    ...     name: str
    ...     release_date: datetime
    ...     password: Annotated[str, SearchableExclude()]
    >>> [d.key for d in extract_filters(OperatingSystem)]
    ['name', 'release_date']
"""

import dataclasses
import enum
import inspect
import sys
import types
import typing
from collections.abc import Collection, Mapping
from datetime import date, datetime
from decimal import Decimal
from functools import lru_cache
from typing import Any, Annotated, ClassVar, Dict, Iterable, List, Optional, Tuple, Union, get_args, get_origin

from .constants import FieldType, operators_for
from .logger import Logger
from .schema import FilterDescriptor
from .types import EntityType

logger = Logger(__name__)

__all__ = (
    "FieldSpec",
    "Searchable",
    "SearchableExclude",
    "Transient",
    "build_filters",
    "collect_field_specs",
    "detect_field_type",
    "extract_filters",
)


@dataclasses.dataclass(frozen=True)
class Searchable:
    """Explicit searchable metadata for one attribute."""

    field_type: FieldType
    nullable: bool = True
    field_name: str = ""


@dataclasses.dataclass(frozen=True)
class SearchableExclude:
    """Marks an attribute as hidden from search."""


@dataclasses.dataclass(frozen=True)
class Transient:
    """Marks an attribute as not persisted, hence not searchable."""


@dataclasses.dataclass(frozen=True)
class FieldSpec:
    """Everything the extractor needs to know about one attribute."""

    name: str
    python_type: Any = None
    excluded: bool = False
    static: bool = False
    transient: bool = False
    searchable: Optional[Searchable] = None


# Base classes whose own annotations never describe entity attributes
_STOP_MODULES = ("builtins", "typing", "pydantic", "pydantic.main", "abc")

_TEXT_TYPES = (str, bytes, bytearray)
_CONTAINER_ORIGINS = (list, tuple, set, frozenset, dict)


def _is_stop_class(klass: type) -> bool:
    return klass is object or klass.__module__ in _STOP_MODULES or klass.__module__.startswith("pydantic.")


def _unwrap(tp: Any) -> Tuple[Any, Tuple[Any, ...], bool]:
    """Strip Annotated/Optional/ClassVar wrappers.

    Returns:
        (inner type, collected Annotated extras, is ClassVar)
    """
    extras: List[Any] = []
    is_class_var = False
    while True:
        origin = get_origin(tp)
        if origin is Annotated:
            args = get_args(tp)
            tp = args[0]
            extras.extend(args[1:])
            continue
        if tp is ClassVar or origin is ClassVar:
            is_class_var = True
            args = get_args(tp)
            if not args:
                return Any, tuple(extras), True
            tp = args[0]
            continue
        if origin is Union or origin is getattr(types, "UnionType", None):
            members = [arg for arg in get_args(tp) if arg is not type(None)]
            if len(members) == 1:
                tp = members[0]
                continue
        return tp, tuple(extras), is_class_var


def _is_collection(tp: Any) -> bool:
    origin = get_origin(tp)
    if origin is not None:
        if origin in _CONTAINER_ORIGINS:
            return True
        if inspect.isclass(origin) and issubclass(origin, (Collection, Mapping)) and not issubclass(origin, _TEXT_TYPES):
            return True
        return False
    if inspect.isclass(tp) and issubclass(tp, (Collection, Mapping)) and not issubclass(tp, _TEXT_TYPES):
        return True
    return False


def detect_field_type(tp: Any) -> Optional[FieldType]:
    """Map a Python type to its :class:`FieldType`, or ``None`` when unsupported."""
    if not inspect.isclass(tp):
        return None
    if issubclass(tp, bool):
        return FieldType.BOOLEAN
    if issubclass(tp, (int, float, Decimal)) and not issubclass(tp, enum.Enum):
        return FieldType.NUMBER
    if issubclass(tp, (datetime, date)):
        return FieldType.DATE
    if issubclass(tp, str):
        return FieldType.STRING
    return None


_UNRESOLVED = object()


def _resolved_hints(entity_type: EntityType) -> Optional[Dict[str, Any]]:
    try:
        return typing.get_type_hints(entity_type, include_extras=True)
    except (NameError, AttributeError, SyntaxError, TypeError) as e:
        logger.debug("Resolving annotations of %s one by one: %s", entity_type.__name__, e)
        return None


def _resolve_annotation(klass: type, name: str, annotation: Any) -> Any:
    """Evaluate one postponed annotation in the namespace of the class declaring it."""
    if isinstance(annotation, typing.ForwardRef):
        annotation = annotation.__forward_arg__
    if not isinstance(annotation, str):
        return annotation
    module = sys.modules.get(klass.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    try:
        return eval(annotation, globalns, dict(vars(klass)))
    except (NameError, AttributeError, SyntaxError, TypeError) as e:
        logger.warning("Skipping '%s.%s': cannot resolve annotation %r (%s)", klass.__name__, name, annotation, e)
        return _UNRESOLVED


def _dataclass_transients(entity_type: EntityType) -> set:
    if not dataclasses.is_dataclass(entity_type):
        return set()
    return {f.name for f in dataclasses.fields(entity_type) if f.metadata.get("transient")}


def collect_field_specs(entity_type: EntityType) -> List[FieldSpec]:
    """Enumerate the attributes of ``entity_type`` including inherited ones.

    Ancestors are walked from the most basic to the most derived class, stopping at
    ``object`` and library base classes; a redefinition keeps its first position.
    """
    raw: Dict[str, Tuple[type, Any]] = {}
    for klass in reversed(entity_type.__mro__):
        if _is_stop_class(klass):
            continue
        for name, annotation in inspect.get_annotations(klass).items():
            raw[name] = (klass, annotation)

    hints = _resolved_hints(entity_type)
    transients = _dataclass_transients(entity_type)
    specs: List[FieldSpec] = []
    for name, (klass, annotation) in raw.items():
        if hints is not None and name in hints:
            resolved = hints[name]
        else:
            resolved = _resolve_annotation(klass, name, annotation)
        if resolved is _UNRESOLVED:
            continue
        tp, extras, is_class_var = _unwrap(resolved)
        specs.append(
            FieldSpec(
                name=name,
                python_type=tp,
                excluded=any(isinstance(extra, SearchableExclude) for extra in extras),
                static=is_class_var,
                transient=(
                    name.startswith("_")
                    or name in transients
                    or any(isinstance(extra, Transient) for extra in extras)
                ),
                searchable=next((extra for extra in extras if isinstance(extra, Searchable)), None),
            )
        )
    return specs


def _descriptor_for(spec: FieldSpec) -> Optional[FilterDescriptor]:
    if spec.excluded or spec.static or spec.transient:
        return None
    if _is_collection(spec.python_type):
        return None

    if spec.searchable is not None:
        field_type = FieldType(spec.searchable.field_type)
        return FilterDescriptor(
            key=spec.searchable.field_name or spec.name,
            field_type=field_type,
            nullable=spec.searchable.nullable,
            available_operators=operators_for(field_type),
        )

    detected = detect_field_type(spec.python_type)
    if detected is None:
        return None
    return FilterDescriptor(
        key=spec.name,
        field_type=detected,
        nullable=True,
        available_operators=operators_for(detected),
    )


def build_filters(specs: Iterable[FieldSpec]) -> Tuple[FilterDescriptor, ...]:
    """Apply the extraction policy to explicit field specs."""
    descriptors = []
    for spec in specs:
        descriptor = _descriptor_for(spec)
        if descriptor is not None:
            descriptors.append(descriptor)
    return tuple(descriptors)


@lru_cache(maxsize=None)
def extract_filters(entity_type: EntityType) -> Tuple[FilterDescriptor, ...]:
    """Return the filter descriptors of ``entity_type`` (computed once per type)."""
    descriptors = build_filters(collect_field_specs(entity_type))
    logger.debug("Extracted %d filters for %s", len(descriptors), entity_type.__name__)
    return descriptors


def string_fields(descriptors: Iterable[FilterDescriptor]) -> List[str]:
    """Keys of the STRING-typed descriptors, in order."""
    return [d.key for d in descriptors if d.field_type == FieldType.STRING]
