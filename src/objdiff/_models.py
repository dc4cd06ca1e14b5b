from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ._value_object import ValueObject

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(slots=True, frozen=True, eq=False)
class LeafDifference(ValueObject):
    """A single differing value found while comparing two object graphs.

    Attributes:
        path: Dotted/bracketed location of the difference, e.g. ``child.items[0]``.
            Empty when the compared roots themselves differ.
        old_value: Value found at ``path`` in the old object.
        new_value: Value found at ``path`` in the new object.

    """

    path: str
    old_value: Any
    new_value: Any

    def _equality_components(self) -> Iterator[Any]:
        yield self.path
        yield self.old_value
        yield self.new_value

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "old_value": self.old_value,
            "new_value": self.new_value,
        }
