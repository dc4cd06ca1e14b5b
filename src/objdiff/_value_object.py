"""Module providing a base class for values compared by their components."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any


def _component_hash(component: Any) -> int:
    """Hash a single equality component.

    Handles:
    - None → 0
    - hashable values → hash(value)
    - Mapping → frozenset of (key, component hash) pairs
    - set → hash of the equal frozenset
    - other iterables (list, ...) → tuple of element component hashes
    - anything else unhashable → 0
    """
    if component is None:
        return 0
    try:
        return hash(component)
    except TypeError:
        pass

    if isinstance(component, Mapping):
        return hash(frozenset((key, _component_hash(value)) for key, value in component.items()))
    if isinstance(component, (set, frozenset)):
        # Set elements are always hashable; hash like the equal frozenset
        return hash(frozenset(component))
    if isinstance(component, Iterable):
        return hash(tuple(_component_hash(item) for item in component))
    # Unhashable objects with custom equality (e.g. mutable dataclasses)
    return 0


class ValueObject(ABC):
    """Base class for immutable values with structural equality.

    Subclasses declare the ordered list of components that define them.
    Two instances are equal iff they have the same concrete type and their
    components are pairwise equal; the hash is derived from the same
    components so that equal instances always hash alike.
    """

    __slots__ = ()

    @abstractmethod
    def _equality_components(self) -> Iterable[Any]:
        """Return the components defining this value, in a stable order."""

    def __eq__(self, other: object) -> bool:
        if other is None or type(other) is not type(self):
            return NotImplemented
        assert isinstance(other, ValueObject)
        return tuple(self._equality_components()) == tuple(other._equality_components())

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return hash(tuple(_component_hash(component) for component in self._equality_components()))

    def __repr__(self) -> str:
        components = ", ".join(repr(component) for component in self._equality_components())
        return f"{type(self).__name__}({components})"
