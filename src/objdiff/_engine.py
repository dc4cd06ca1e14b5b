"""Structural diff engine.

Two values are walked in lockstep. At each node both values are classified
(keyed collection, ordered collection, composite or leaf) and:

- keyed collections with different key sets, and ordered collections with
  different lengths, are reported as a single difference holding both
  collections;
- otherwise the engine descends into every key, index or field;
- leaves are reported when they are not equal.

The traversal uses an explicit work-list, so deep graphs are not limited by
the interpreter recursion limit. Cyclic graphs are not supported unless
`max_depth` is set.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ._classify import Classifier, Composite, DefaultClassifier, KeyedCollection, Leaf, Node, OrderedCollection
from ._errors import DepthLimitError, DiffError, FieldAccessError, ShapeMismatchError
from ._models import LeafDifference
from ._path import Path

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._fields import Field

logger = logging.getLogger(__name__)

type _Task = tuple[Any, Any, Path]


class MismatchPolicy(StrEnum):
    """What to do when two values cannot be compared structurally."""

    REPORT = "report"
    """Report both values as a single difference at the current path."""
    RAISE = "raise"
    """Abort the comparison with the error."""


class Comparer:
    """Compare object graphs and list their leaf differences.

    Args:
        classifier: Classifier deciding how each value is walked. Defaults to `DefaultClassifier`.
        policy: Handling of shape mismatches and field access failures.
        ignore: Rendered paths (e.g. ``"meta.updated_at"``) whose subtrees are skipped.
        max_depth: Maximum number of path parts below the root. None disables the limit.

    Example::

        from objdiff import Comparer

        comparer = Comparer(ignore=["updated_at"])
        for diff in comparer.compare(old_user, new_user):
            print(diff.path, diff.old_value, diff.new_value)

    """

    def __init__(
        self,
        *,
        classifier: Classifier | None = None,
        policy: MismatchPolicy = MismatchPolicy.REPORT,
        ignore: Iterable[str] = (),
        max_depth: int | None = None,
    ) -> None:
        if max_depth is not None and max_depth < 0:
            msg = f"max_depth must be non-negative, got {max_depth}"
            raise ValueError(msg)
        self._classifier = classifier if classifier is not None else DefaultClassifier()
        self._policy = MismatchPolicy(policy)
        self._ignore = frozenset(ignore)
        self._max_depth = max_depth

    @property
    def policy(self) -> MismatchPolicy:
        return self._policy

    @property
    def ignore(self) -> frozenset[str]:
        return self._ignore

    @property
    def max_depth(self) -> int | None:
        return self._max_depth

    def compare(self, old_value: Any, new_value: Any, path: str = "") -> list[LeafDifference]:
        """Compare two values and return their differences in traversal order.

        Args:
            old_value: The old value.
            new_value: The new value, expected to have the same shape as `old_value`.
            path: Prefix for every reported path. Empty for the root.

        Returns:
            The leaf differences. Empty if the values are structurally identical.

        Raises:
            ShapeMismatchError: If the shapes differ and the policy is `MismatchPolicy.RAISE`.
            FieldAccessError: If fields cannot be read and the policy is `MismatchPolicy.RAISE`.
            DepthLimitError: If `max_depth` is exceeded.

        """
        results: list[LeafDifference] = []
        stack: list[_Task] = [(old_value, new_value, Path(root=path))]

        while stack:
            old, new, node_path = stack.pop()
            if self._ignore and str(node_path) in self._ignore:
                logger.debug(f"Skipping ignored path '{node_path}'")
                continue
            if self._max_depth is not None and node_path.depth > self._max_depth:
                raise DepthLimitError(str(node_path), self._max_depth)

            children = self._visit(old, new, node_path, results)
            # Reversed so that children are visited in their natural order
            stack.extend(reversed(children))

        return results

    def _visit(self, old: Any, new: Any, path: Path, results: list[LeafDifference]) -> list[_Task]:
        # Absence is compared as a leaf, never as a shape mismatch
        if old is None or new is None:
            self._compare_leaves(old, new, path, results)
            return []

        try:
            old_node = self._classifier.classify(old)
            new_node = self._classifier.classify(new)
        except FieldAccessError as e:
            error = FieldAccessError(f"{e} (at '{path}')", path=str(path))
            error.__cause__ = e
            return self._fail(error, old, new, path, results)

        if old_node.kind != new_node.kind:
            error = ShapeMismatchError(str(path), old_node.kind, new_node.kind)
            return self._fail(error, old, new, path, results)

        return self._descend(old_node, new_node, path, results)

    def _descend(self, old_node: Node, new_node: Node, path: Path, results: list[LeafDifference]) -> list[_Task]:
        match old_node, new_node:
            case KeyedCollection(value=old_map), KeyedCollection(value=new_map):
                if old_map.keys() != new_map.keys():
                    results.append(LeafDifference(str(path), old_map, new_map))
                    return []
                return [(old_map[key], new_map[key], path.item(key)) for key in old_map]

            case OrderedCollection(value=old_coll, elements=old_items), OrderedCollection(
                value=new_coll,
                elements=new_items,
            ):
                if len(old_items) != len(new_items):
                    results.append(LeafDifference(str(path), old_coll, new_coll))
                    return []
                return [
                    (old_item, new_item, path.item(index))
                    for index, (old_item, new_item) in enumerate(zip(old_items, new_items, strict=True))
                ]

            case Composite(value=old, fields=old_fields), Composite(value=new, fields=new_fields):
                old_names = [f.name for f in old_fields]
                new_names = [f.name for f in new_fields]
                if old_names != new_names:
                    detail = f"fields {old_names} vs {new_names}"
                    error = ShapeMismatchError(str(path), old_node.kind, new_node.kind, detail)
                    return self._fail(error, old, new, path, results)
                return self._read_fields(old, new, old_fields, path, results)

            case Leaf(value=old), Leaf(value=new):
                self._compare_leaves(old, new, path, results)
                return []

            case _:
                msg = f"Unknown node types: {type(old_node)}, {type(new_node)}"
                raise TypeError(msg)

    def _read_fields(
        self,
        old: Any,
        new: Any,
        fields: Iterable[Field],
        path: Path,
        results: list[LeafDifference],
    ) -> list[_Task]:
        children: list[_Task] = []
        for field in fields:
            try:
                old_field_value = field.getter(old)
                new_field_value = field.getter(new)
            except Exception as e:
                msg = f"Failed to read field '{field.name}' at '{path}': {e}"
                error = FieldAccessError(msg, path=str(path), field_name=field.name)
                error.__cause__ = e
                return self._fail(error, old, new, path, results)
            children.append((old_field_value, new_field_value, path.attribute(field.name)))
        return children

    @staticmethod
    def _compare_leaves(old: Any, new: Any, path: Path, results: list[LeafDifference]) -> None:
        # Identity first so that a value such as NaN equals itself, as in containers
        if old is not new and old != new:
            results.append(LeafDifference(str(path), old, new))

    def _fail(self, error: DiffError, old: Any, new: Any, path: Path, results: list[LeafDifference]) -> list[_Task]:
        if self._policy is MismatchPolicy.RAISE:
            raise error
        logger.debug(f"{error}; reporting both values as a single difference")
        results.append(LeafDifference(str(path), old, new))
        return []


def compare(
    old_value: Any,
    new_value: Any,
    path: str = "",
    *,
    classifier: Classifier | None = None,
    policy: MismatchPolicy = MismatchPolicy.REPORT,
    ignore: Iterable[str] = (),
    max_depth: int | None = None,
) -> list[LeafDifference]:
    """Compare two values and return their leaf differences.

    Shortcut for ``Comparer(...).compare(old_value, new_value, path)``.

    Fields are discovered from the type, not the instance: a plain class whose
    attributes are only assigned in ``__init__`` has no fields and is compared
    as a leaf with its own ``__eq__`` (identity by default). Annotate the
    attributes or register the type with `DefaultFieldAccessor.register` to
    compare it field by field.

    Examples:
        >>> compare({"a": 1, "b": [1, 2]}, {"a": 1, "b": [1, 3]})
        [LeafDifference(path='[b][1]', old_value=2, new_value=3)]
        >>> compare([1], [1, 2])
        [LeafDifference(path='', old_value=[1], new_value=[1, 2])]

    """
    comparer = Comparer(classifier=classifier, policy=policy, ignore=ignore, max_depth=max_depth)
    return comparer.compare(old_value, new_value, path)
