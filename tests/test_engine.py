"""Tests for the structural diff engine in objdiff._engine."""

import math
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Flag, auto
from typing import Any

import pytest
from pydantic import BaseModel

from objdiff import (
    Comparer,
    DefaultClassifier,
    DefaultFieldAccessor,
    DepthLimitError,
    FieldAccessError,
    LeafDifference,
    MismatchPolicy,
    NodeKind,
    ShapeMismatchError,
    compare,
)

# --- Test Fixtures ---


class Access(Flag):
    READ = auto()
    WRITE = auto()


class Unannotated:
    """Attributes assigned in __init__ only, without class annotations."""

    def __init__(self, value: int) -> None:
        self.value = value


class RootWithProps(BaseModel):
    prop1: str
    prop2: int
    prop3: Decimal


@dataclass
class RootWithChild:
    child: Any


class Child:
    child_prop: str

    def __init__(self, child_prop: str) -> None:
        self.child_prop = child_prop


class WithIndexer:
    def __init__(self, a: int, b: int) -> None:
        self._internal_data = {"a": a, "b": b}

    @property
    def a(self) -> int:
        return self._internal_data.get("a", 0)

    @property
    def b(self) -> int:
        return self._internal_data.get("b", 0)

    def __getitem__(self, key: str) -> int:
        return self._internal_data.get(key, 0)


class Broken:
    @property
    def explode(self) -> int:
        msg = "boom"
        raise RuntimeError(msg)


class Point(BaseModel):
    x: int
    y: int


class Segment(BaseModel):
    start: Point
    end: Point
    tags: list[str] = []


@dataclass
class Node:
    name: str
    children: list["Node"] = field(default_factory=list)


# --- Composite Tests ---


class TestCompareComposites:
    def test_root_props_are_different(self) -> None:
        old = RootWithProps(prop1="a", prop2=1, prop3=Decimal(2))
        new = RootWithProps(prop1="b", prop2=2, prop3=Decimal(3))

        diffs = compare(old, new)

        assert diffs == [
            LeafDifference("prop1", "a", "b"),
            LeafDifference("prop2", 1, 2),
            LeafDifference("prop3", Decimal(2), Decimal(3)),
        ]

    def test_root_props_are_the_same(self) -> None:
        old = RootWithProps(prop1="a", prop2=1, prop3=Decimal(2))
        new = RootWithProps(prop1="a", prop2=1, prop3=Decimal(2))

        assert compare(old, new) == []

    def test_child_props_are_different(self) -> None:
        old = RootWithChild(Child("a"))
        new = RootWithChild(Child("b"))

        assert compare(old, new) == [LeafDifference("child.child_prop", "a", "b")]

    def test_child_props_are_the_same(self) -> None:
        assert compare(RootWithChild(Child("a")), RootWithChild(Child("a"))) == []

    def test_properties_are_compared(self) -> None:
        old = RootWithChild(WithIndexer(1, 2))
        new = RootWithChild(WithIndexer(1, 3))

        assert compare(old, new) == [LeafDifference("child.b", 2, 3)]

    def test_fields_are_reported_in_declaration_order(self) -> None:
        old = Segment(start=Point(x=0, y=0), end=Point(x=1, y=1))
        new = Segment(start=Point(x=5, y=6), end=Point(x=1, y=2))

        diffs = compare(old, new)

        assert [d.path for d in diffs] == ["start.x", "start.y", "end.y"]

    def test_only_changed_field_is_reported(self) -> None:
        old = Segment(start=Point(x=0, y=0), end=Point(x=1, y=1))
        new = Segment(start=Point(x=0, y=0), end=Point(x=1, y=9))

        assert compare(old, new) == [LeafDifference("end.y", 1, 9)]


# --- Ordered Collection Tests ---


class TestCompareOrderedCollections:
    @pytest.mark.parametrize("factory", [list, tuple])
    def test_size_mismatch_is_reported_once(self, factory: type) -> None:
        baseline = factory(["a"])
        empty = factory([])
        with_one_more_value = factory(["a", "b"])

        empty_diffs = compare(RootWithChild(baseline), RootWithChild(empty))
        more_diffs = compare(RootWithChild(baseline), RootWithChild(with_one_more_value))

        assert empty_diffs == [LeafDifference("child", baseline, empty)]
        assert more_diffs == [LeafDifference("child", baseline, with_one_more_value)]

    def test_size_mismatch_keeps_full_collections(self) -> None:
        baseline = ["a"]
        other = ["a", "b"]

        (diff,) = compare(RootWithChild(baseline), RootWithChild(other))

        assert diff.old_value is baseline
        assert diff.new_value is other

    @pytest.mark.parametrize("factory", [list, tuple])
    def test_same_size_different_value(self, factory: type) -> None:
        diffs = compare(RootWithChild(factory(["a"])), RootWithChild(factory(["b"])))

        assert diffs == [LeafDifference("child[0]", "a", "b")]

    @pytest.mark.parametrize(
        ("old", "new"),
        [
            (["a"], ["a"]),
            (["a", "b"], ["a", "b"]),
            ([], []),
            ((1, 2), (1, 2)),
        ],
    )
    def test_equal_collections_are_empty(self, old: Any, new: Any) -> None:
        assert compare(RootWithChild(old), RootWithChild(new)) == []

    def test_indices_follow_order(self) -> None:
        diffs = compare([1, 2, 3], [0, 2, 4])

        assert diffs == [LeafDifference("[0]", 1, 0), LeafDifference("[2]", 3, 4)]

    def test_nested_collections(self) -> None:
        diffs = compare([[1, 2], [3]], [[1, 5], [3]])

        assert diffs == [LeafDifference("[0][1]", 2, 5)]

    def test_list_of_composites(self) -> None:
        old = [Point(x=1, y=2), Point(x=3, y=4)]
        new = [Point(x=1, y=2), Point(x=3, y=5)]

        assert compare(old, new) == [LeafDifference("[1].y", 4, 5)]

    def test_list_and_tuple_have_the_same_shape(self) -> None:
        assert compare([1, 2], (1, 2)) == []

    def test_sets_of_different_size(self) -> None:
        assert compare({1}, {1, 2}) == [LeafDifference("", {1}, {1, 2})]

    def test_equal_sets_are_empty(self) -> None:
        value = frozenset({"a", "b"})

        assert compare(value, value) == []

    def test_strings_are_leaves(self) -> None:
        assert compare("abc", "abd") == [LeafDifference("", "abc", "abd")]

    def test_bytes_are_leaves(self) -> None:
        assert compare(b"ab", b"abc") == [LeafDifference("", b"ab", b"abc")]


# --- Keyed Collection Tests ---


class TestCompareKeyedCollections:
    def test_key_mismatch_is_reported_once(self) -> None:
        baseline = {"a": "a"}
        empty: dict[str, str] = {}
        with_one_more_value = {"a": "a", "b": "b"}
        same_size_different_key = {"b": "a"}

        assert compare(RootWithChild(baseline), RootWithChild(empty)) == [
            LeafDifference("child", baseline, empty),
        ]
        assert compare(RootWithChild(baseline), RootWithChild(with_one_more_value)) == [
            LeafDifference("child", baseline, with_one_more_value),
        ]
        assert compare(RootWithChild(baseline), RootWithChild(same_size_different_key)) == [
            LeafDifference("child", baseline, same_size_different_key),
        ]

    def test_same_keys_different_value(self) -> None:
        diffs = compare(RootWithChild({"a": "a"}), RootWithChild({"a": "b"}))

        assert diffs == [LeafDifference("child[a]", "a", "b")]

    @pytest.mark.parametrize(
        ("old", "new"),
        [
            ({"a": "a"}, {"a": "a"}),
            ({"a": "a", "b": "b"}, {"a": "a", "b": "b"}),
            ({}, {}),
        ],
    )
    def test_equal_dictionaries_are_empty(self, old: dict[str, str], new: dict[str, str]) -> None:
        assert compare(RootWithChild(old), RootWithChild(new)) == []

    def test_key_order_does_not_matter(self) -> None:
        old = {"a": 1, "b": 2}
        new = {"b": 3, "a": 1}

        assert compare(old, new) == [LeafDifference("[b]", 2, 3)]

    def test_entries_follow_old_key_order(self) -> None:
        old = {"b": 1, "a": 1}
        new = {"a": 2, "b": 2}

        assert [d.path for d in compare(old, new)] == ["[b]", "[a]"]

    def test_non_string_keys(self) -> None:
        assert compare({1: "x", (2, 3): "y"}, {1: "x", (2, 3): "z"}) == [
            LeafDifference("[2,3]", "y", "z"),
        ]

    def test_mapping_types_are_interchangeable(self) -> None:
        assert compare(OrderedDict(a=1), {"a": 2}) == [LeafDifference("[a]", 1, 2)]

    def test_nested_mapping_in_composite(self) -> None:
        old = RootWithChild({"k": Point(x=1, y=1)})
        new = RootWithChild({"k": Point(x=1, y=2)})

        assert compare(old, new) == [LeafDifference("child[k].y", 1, 2)]


# --- Leaf Tests ---


class TestCompareLeaves:
    @pytest.mark.parametrize(
        ("old", "new", "expected"),
        [
            (1, 1, []),
            (1, 2, [LeafDifference("", 1, 2)]),
            ("a", "a", []),
            (None, None, []),
            (True, False, [LeafDifference("", True, False)]),
            (1.5, 1.5, []),
        ],
    )
    def test_scalars(self, old: Any, new: Any, expected: list[LeafDifference]) -> None:
        assert compare(old, new) == expected

    def test_root_path_prefix(self) -> None:
        assert compare(1, 2, "value") == [LeafDifference("value", 1, 2)]

    def test_root_path_prefix_joins_fields_with_dot(self) -> None:
        diffs = compare(Point(x=1, y=1), Point(x=2, y=1), "origin")

        assert diffs == [LeafDifference("origin.x", 1, 2)]

    def test_nan_equals_itself(self) -> None:
        nan = math.nan

        assert compare([nan], [nan]) == []

    def test_none_against_composite_is_a_leaf_difference(self) -> None:
        point = Point(x=1, y=1)

        assert compare(RootWithChild(None), RootWithChild(point)) == [
            LeafDifference("child", None, point),
        ]

    def test_none_against_composite_with_raise_policy(self) -> None:
        point = Point(x=1, y=1)

        diffs = compare(None, point, policy=MismatchPolicy.RAISE)

        assert diffs == [LeafDifference("", None, point)]

    def test_object_without_fields_compared_by_equality(self) -> None:
        sentinel = object()

        assert compare(sentinel, sentinel) == []
        assert len(compare(object(), object())) == 1

    def test_combined_flag_is_a_single_leaf(self) -> None:
        old = Access.READ | Access.WRITE
        new = Access.READ

        assert compare(old, new) == [LeafDifference("", old, new)]

    def test_unannotated_class_compares_as_leaf_until_registered(self) -> None:
        accessor = DefaultFieldAccessor()
        accessor.register(Unannotated, ["value"])
        old, new = Unannotated(1), Unannotated(1)

        assert compare(old, new) == [LeafDifference("", old, new)]
        assert compare(old, new, classifier=DefaultClassifier(accessor)) == []
        assert compare(old, Unannotated(2), classifier=DefaultClassifier(accessor)) == [
            LeafDifference("value", 1, 2),
        ]


# --- Properties ---


class TestCompareProperties:
    @pytest.mark.parametrize(
        "value",
        [
            1,
            "text",
            None,
            [1, [2, 3], {"a": (4, 5)}],
            {"a": {"b": {"c": [1, 2]}}},
            Segment(start=Point(x=0, y=1), end=Point(x=2, y=3), tags=["x"]),
            RootWithChild(Child("a")),
            Node("root", [Node("a"), Node("b", [Node("c")])]),
        ],
    )
    def test_reflexive(self, value: Any) -> None:
        assert compare(value, value) == []

    def test_equal_but_distinct_instances(self) -> None:
        old = Node("root", [Node("a"), Node("b", [Node("c")])])
        new = Node("root", [Node("a"), Node("b", [Node("c")])])

        assert old is not new
        assert compare(old, new) == []

    def test_idempotent(self) -> None:
        old = {"a": [1, 2, {"b": Point(x=1, y=2)}], "c": "x"}
        new = {"a": [1, 3, {"b": Point(x=1, y=5)}], "c": "y"}

        first = compare(old, new)
        second = compare(old, new)

        assert first == second
        assert [d.path for d in first] == ["[a][1]", "[a][2][b].y", "[c]"]

    def test_deep_graph_does_not_hit_recursion_limit(self) -> None:
        old: list[Any] = [0]
        new: list[Any] = [1]
        for _ in range(5000):
            old = [old]
            new = [new]

        diffs = compare(old, new)

        assert len(diffs) == 1
        assert diffs[0].path == "[0]" * 5001
        assert (diffs[0].old_value, diffs[0].new_value) == (0, 1)


# --- Policy Tests ---


class TestMismatchPolicy:
    def test_report_shape_mismatch(self) -> None:
        old = RootWithChild({"a": 1})
        new = RootWithChild([1])

        assert compare(old, new) == [LeafDifference("child", {"a": 1}, [1])]

    def test_raise_shape_mismatch(self) -> None:
        old = RootWithChild({"a": 1})
        new = RootWithChild([1])

        with pytest.raises(ShapeMismatchError, match="Shape mismatch at 'child'") as exc_info:
            compare(old, new, policy=MismatchPolicy.RAISE)

        assert exc_info.value.path == "child"
        assert exc_info.value.old_kind is NodeKind.KEYED
        assert exc_info.value.new_kind is NodeKind.ORDERED

    def test_leaf_against_composite(self) -> None:
        point = Point(x=1, y=1)

        assert compare(1, point) == [LeafDifference("", 1, point)]
        with pytest.raises(ShapeMismatchError):
            compare(1, point, policy="raise")

    def test_composites_with_different_fields(self) -> None:
        old = RootWithChild(Point(x=1, y=1))
        new = RootWithChild(Child("a"))

        assert compare(old, new) == [LeafDifference("child", old.child, new.child)]
        with pytest.raises(ShapeMismatchError, match="fields"):
            compare(old, new, policy=MismatchPolicy.RAISE)

    def test_report_field_access_failure(self) -> None:
        old = RootWithChild(Broken())
        new = RootWithChild(Broken())

        diffs = compare(old, new)

        assert diffs == [LeafDifference("child", old.child, new.child)]

    def test_raise_field_access_failure(self) -> None:
        with pytest.raises(FieldAccessError, match="explode") as exc_info:
            compare(RootWithChild(Broken()), RootWithChild(Broken()), policy=MismatchPolicy.RAISE)

        assert exc_info.value.path == "child"
        assert exc_info.value.field_name == "explode"

    def test_raise_accessor_failure(self) -> None:
        class FailingAccessor(DefaultFieldAccessor):
            def get_fields(self, type_: type) -> Any:
                if type_ is Child:
                    msg = "no metadata"
                    raise LookupError(msg)
                return super().get_fields(type_)

        comparer = Comparer(
            classifier=DefaultClassifier(FailingAccessor()),
            policy=MismatchPolicy.RAISE,
        )

        with pytest.raises(FieldAccessError, match="no metadata"):
            comparer.compare(RootWithChild(Child("a")), RootWithChild(Child("b")))

    def test_no_partial_results_on_error(self) -> None:
        old = [1, {"a": 1}]
        new = [2, [1]]

        with pytest.raises(ShapeMismatchError):
            compare(old, new, policy=MismatchPolicy.RAISE)


# --- Comparer Options ---


class TestComparerOptions:
    def test_ignore_skips_subtree(self) -> None:
        old = Segment(start=Point(x=0, y=0), end=Point(x=1, y=1), tags=["a"])
        new = Segment(start=Point(x=9, y=9), end=Point(x=1, y=2), tags=["b"])

        comparer = Comparer(ignore=["start", "tags[0]"])

        assert comparer.compare(old, new) == [LeafDifference("end.y", 1, 2)]

    def test_ignore_uses_rendered_path_with_prefix(self) -> None:
        assert compare({"a": 1}, {"a": 2}, "doc", ignore=["doc[a]"]) == []

    def test_max_depth_within_limit(self) -> None:
        old = {"a": {"b": 1}}
        new = {"a": {"b": 2}}

        assert compare(old, new, max_depth=2) == [LeafDifference("[a][b]", 1, 2)]

    def test_max_depth_exceeded(self) -> None:
        with pytest.raises(DepthLimitError, match="Maximum depth 1"):
            compare({"a": {"b": 1}}, {"a": {"b": 2}}, max_depth=1)

    def test_max_depth_stops_cycles(self) -> None:
        old = Node("a")
        old.children.append(old)
        new = Node("a")
        new.children.append(new)

        with pytest.raises(DepthLimitError):
            compare(old, new, max_depth=50)

    def test_negative_max_depth_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="max_depth"):
            Comparer(max_depth=-1)

    def test_policy_accepts_string(self) -> None:
        assert Comparer(policy="raise").policy is MismatchPolicy.RAISE

    def test_comparer_is_reusable(self) -> None:
        comparer = Comparer()

        assert comparer.compare([1], [2]) == [LeafDifference("[0]", 1, 2)]
        assert comparer.compare([1], [1]) == []
