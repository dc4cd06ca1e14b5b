"""Classification of values into the node kinds the diff engine walks."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

from ._errors import FieldAccessError
from ._fields import DefaultFieldAccessor

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._fields import Field, FieldAccessor


class NodeKind(StrEnum):
    KEYED = "keyed collection"
    ORDERED = "ordered collection"
    COMPOSITE = "composite"
    LEAF = "leaf"


@dataclass(slots=True, frozen=True)
class KeyedCollection:
    kind: ClassVar[NodeKind] = NodeKind.KEYED

    value: Mapping[Any, Any]


@dataclass(slots=True, frozen=True)
class OrderedCollection:
    kind: ClassVar[NodeKind] = NodeKind.ORDERED

    value: Collection[Any]
    elements: Sequence[Any]


@dataclass(slots=True, frozen=True)
class Composite:
    kind: ClassVar[NodeKind] = NodeKind.COMPOSITE

    value: Any
    fields: tuple[Field, ...]


@dataclass(slots=True, frozen=True)
class Leaf:
    kind: ClassVar[NodeKind] = NodeKind.LEAF

    value: Any


type Node = KeyedCollection | OrderedCollection | Composite | Leaf

# Values that compare as a whole even when they are iterable (e.g. `enum.Flag`)
_ATOMIC_COLLECTIONS = (str, bytes, bytearray, memoryview, Enum)


class Classifier(Protocol):
    def classify(self, value: Any) -> Node:
        """Classify `value` into exactly one node kind."""
        ...


class DefaultClassifier:
    """Classify values using the `collections.abc` protocols and a field accessor.

    The checks are made in a fixed order, so a value satisfying several of them
    takes the first kind that matches:

    1. `Mapping` → keyed collection
    2. any other sized, iterable container (`Sequence`, `Set`, ...) → ordered collection
    3. a type with fields according to the field accessor → composite
    4. anything else → leaf

    Strings and bytes are always leaves.
    """

    def __init__(self, field_accessor: FieldAccessor | None = None) -> None:
        self._field_accessor = field_accessor if field_accessor is not None else DefaultFieldAccessor()

    @property
    def field_accessor(self) -> FieldAccessor:
        return self._field_accessor

    def classify(self, value: Any) -> Node:
        if isinstance(value, _ATOMIC_COLLECTIONS):
            return Leaf(value)
        if isinstance(value, Mapping):
            return KeyedCollection(value)
        if isinstance(value, Collection):
            elements = value if isinstance(value, (list, tuple)) else tuple(value)
            return OrderedCollection(value, elements)

        type_ = type(value)
        try:
            fields = self._field_accessor.get_fields(type_)
        except Exception as e:
            msg = f"Failed to enumerate the fields of type {type_.__qualname__}: {e}"
            raise FieldAccessError(msg) from e

        if fields:
            return Composite(value, tuple(fields))
        return Leaf(value)
