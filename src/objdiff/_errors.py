from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._classify import NodeKind


class DiffError(Exception):
    """Base class for errors raised while comparing two values."""


class ShapeMismatchError(DiffError):
    """Old and new values have a different structure at the same path."""

    def __init__(self, path: str, old_kind: NodeKind, new_kind: NodeKind, detail: str = "") -> None:
        self.path = path
        self.old_kind = old_kind
        self.new_kind = new_kind
        msg = f"Shape mismatch at '{path}': {old_kind} vs {new_kind}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class FieldAccessError(DiffError):
    """The fields of a composite value could not be enumerated or read."""

    def __init__(self, msg: str, *, path: str | None = None, field_name: str | None = None) -> None:
        self.path = path
        self.field_name = field_name
        super().__init__(msg)


class DepthLimitError(DiffError):
    """The comparison descended deeper than the configured limit."""

    def __init__(self, path: str, max_depth: int) -> None:
        self.path = path
        self.max_depth = max_depth
        super().__init__(f"Maximum depth {max_depth} exceeded at '{path}'")
