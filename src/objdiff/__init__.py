"""Structural diff of object graphs."""

__all__ = [
    "Classifier",
    "Comparer",
    "Composite",
    "DefaultClassifier",
    "DefaultFieldAccessor",
    "DepthLimitError",
    "DiffError",
    "Field",
    "FieldAccessError",
    "FieldAccessor",
    "KeyedCollection",
    "Leaf",
    "LeafDifference",
    "MismatchPolicy",
    "Node",
    "NodeKind",
    "OrderedCollection",
    "ShapeMismatchError",
    "ValueObject",
    "compare",
]

from ._classify import Classifier, Composite, DefaultClassifier, KeyedCollection, Leaf, Node, NodeKind, OrderedCollection
from ._engine import Comparer, MismatchPolicy, compare
from ._errors import DepthLimitError, DiffError, FieldAccessError, ShapeMismatchError
from ._fields import DefaultFieldAccessor, Field, FieldAccessor
from ._models import LeafDifference
from ._value_object import ValueObject
