from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Self


class PartBase:
    pass


@dataclass(slots=True, frozen=True)
class AttributePart(PartBase):
    name: str


@dataclass(slots=True, frozen=True)
class ItemPart(PartBase):
    key: Any


def _format_key(key: Any) -> str:
    if isinstance(key, tuple):
        return ",".join(str(k) for k in key)
    return str(key)


@dataclass(slots=True, frozen=True)
class Path:
    """Location of a node inside a compared object graph.

    ``root`` is a caller-supplied prefix kept verbatim (empty for the top
    of the graph). Attribute parts render as ``.name`` (without the dot
    when nothing precedes them) and item parts as ``[key]``.
    """

    root: str = ""
    parts: tuple[PartBase, ...] = ()

    def __str__(self) -> str:
        result = self.root
        for part in self.parts:
            match part:
                case AttributePart(name):
                    result = f"{result}.{name}" if result else name
                case ItemPart(key):
                    result += f"[{_format_key(key)}]"
                case _:
                    msg = f"Unknown part type: {type(part)}"
                    raise TypeError(msg)
        return result

    @property
    def depth(self) -> int:
        return len(self.parts)

    def attribute(self, name: str) -> Self:
        return type(self)(root=self.root, parts=(*self.parts, AttributePart(name=name)))

    def item(self, key: Any) -> Self:
        return type(self)(root=self.root, parts=(*self.parts, ItemPart(key=key)))
