"""Discover the named fields of composite types.

The fields of a type `T` are determined as follows:
1. If `T` (or one of its bases) was registered with `DefaultFieldAccessor.register`, the registered fields are used.
2. If `T` is one of the atomic types (numbers, strings, dates, enums, ...), it has no fields.
3. If `T` is a pydantic model, its model fields followed by its computed fields are used.
4. If `T` is a dataclass, its fields are used, except those declared with `compare=False`.
5. Otherwise the public annotated attributes, properties and slots of `T` are used.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
from dataclasses import dataclass
from datetime import date, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from operator import attrgetter
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, ClassVar, Final, Protocol, get_origin
from uuid import UUID

from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

logger = logging.getLogger(__name__)


ATOMIC_TYPES: Final[tuple[type, ...]] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    memoryview,
    Decimal,
    Fraction,
    date,
    time,
    timedelta,
    UUID,
    PurePath,
    Enum,
    type,
)


@dataclass(slots=True, frozen=True)
class Field:
    """A named field of a composite type with a function reading it from an instance."""

    name: str
    getter: Callable[[Any], Any]

    @classmethod
    def attribute(cls, name: str) -> Field:
        return cls(name=name, getter=attrgetter(name))


class FieldAccessor(Protocol):
    def get_fields(self, type_: type) -> Sequence[Field] | None:
        """Return the ordered fields of `type_`, or None if it is not a composite type."""
        ...


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def _pydantic_fields(type_: type[BaseModel]) -> list[Field]:
    names = [*type_.model_fields, *type_.model_computed_fields]
    return [Field.attribute(name) for name in names]


def _dataclass_fields(type_: type) -> list[Field]:
    return [Field.attribute(f.name) for f in dataclasses.fields(type_) if f.compare]


def _plain_class_fields(type_: type) -> list[Field]:
    names: dict[str, None] = {}
    # Base classes first so that fields keep their declaration order
    for klass in reversed(type_.__mro__):
        if klass is object:
            continue
        for name, annotation in inspect.get_annotations(klass).items():
            if not name.startswith("_") and not _is_class_var(annotation):
                names.setdefault(name)
        for name, attr in vars(klass).items():
            if not name.startswith("_") and isinstance(attr, property):
                names.setdefault(name)
        slots = vars(klass).get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if not name.startswith("_"):
                names.setdefault(name)
    return [Field.attribute(name) for name in names]


class DefaultFieldAccessor:
    """Field accessor backed by registrations and native Python introspection."""

    def __init__(self) -> None:
        self._registry: dict[type, tuple[Field, ...]] = {}

    def register(self, type_: type, fields: Iterable[str | Field]) -> None:
        """Declare the fields of `type_` (and its subclasses) explicitly.

        Args:
            type_: The type to register.
            fields: Field names (read with `getattr`) or `Field` instances, in comparison order.

        """
        self._registry[type_] = tuple(f if isinstance(f, Field) else Field.attribute(f) for f in fields)
        logger.debug(f"Registered fields for {type_.__qualname__}: {[f.name for f in self._registry[type_]]}")

    def get_fields(self, type_: type) -> Sequence[Field] | None:
        for klass in type_.__mro__:
            if klass in self._registry:
                return self._registry[klass]

        if issubclass(type_, ATOMIC_TYPES) or type_.__module__ == "builtins":
            return None

        if issubclass(type_, BaseModel):
            fields = _pydantic_fields(type_)
        elif dataclasses.is_dataclass(type_):
            fields = _dataclass_fields(type_)
        else:
            fields = _plain_class_fields(type_)

        return fields or None
