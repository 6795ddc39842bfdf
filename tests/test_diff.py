"""Tests for jsondelta.diff."""

from __future__ import annotations

import copy
import logging
from decimal import Decimal

import pytest

import importlib

from jsondelta.diff import (
    Diff,
    DiffOperation,
    DiffOptions,
    diff,
    generate_diffs,
    unchanged_values,
)
from jsondelta.equivalence import json_equivalent
from jsondelta.errors import MalformedPointerError
from jsondelta.json_pointer import JsonPointer
from jsondelta.patch import JsonPatch

# `jsondelta.diff` on the package is the re-exported function; fetch the submodule.
diff_module = importlib.import_module("jsondelta.diff")


def _ops(source, target, options=None):
    return diff(source, target, options).to_json()


# ===================================================================
# Elementary diffs
# ===================================================================


class TestGenerateDiffs:
    def test_equivalent_documents(self):
        assert generate_diffs({"a": [1, 2.0]}, {"a": [1.0, 2]}) == []

    def test_scalar_replace(self):
        [item] = generate_diffs({"a": 1}, {"a": 2})
        assert item.operation is DiffOperation.REPLACE
        assert item.pointer == JsonPointer.parse("/a")
        assert item.value == 2

    def test_kind_change_replaces(self):
        [item] = generate_diffs({"a": [1]}, {"a": {"0": 1}})
        assert item.operation is DiffOperation.REPLACE
        assert item.value == {"0": 1}

    def test_object_order(self):
        diffs = generate_diffs({"a": 1, "b": 2, "c": 3}, {"c": 4, "d": 5, "b": 2, "e": 6})
        assert [(d.operation.value, str(d.pointer)) for d in diffs] == [
            ("add", "/d"),
            ("add", "/e"),
            ("remove", "/a"),
            ("replace", "/c"),
        ]

    def test_array_insert_and_append(self):
        diffs = generate_diffs([1, 2], [0, 1, 2, 3])
        assert [(d.operation.value, d.first_index, d.second_index) for d in diffs] == [
            ("add", 0, 0),
            ("add", 2, -1),
        ]
        assert [str(d.pointer) for d in diffs] == ["/0", "/-"]

    def test_array_remove_records_both_indices(self):
        diffs = generate_diffs(["a", "b", "c", "d"], ["a", "d"])
        assert [(d.operation.value, d.first_index, d.second_index) for d in diffs] == [
            ("remove", 1, 1),
            ("remove", 2, 1),
        ]
        assert [d.value for d in diffs] == ["b", "c"]

    def test_aligned_elements_recurse(self):
        [item] = generate_diffs([{"a": 1}, {"b": 2}], [{"a": 1}, {"b": 3}])
        assert item.operation is DiffOperation.REPLACE
        assert item.pointer == JsonPointer.parse("/1/b")
        assert item.array_path is None

    def test_misaligned_elements_replace(self):
        diffs = generate_diffs([1, 2, 3], [0, 1, 5])
        assert [(d.operation.value, str(d.pointer)) for d in diffs] == [
            ("add", "/0"),
            ("replace", "/2"),
            ("remove", "/3"),
        ]

    def test_base_pointer(self):
        [item] = generate_diffs(1, 2, JsonPointer.parse("/root"))
        assert item.pointer == JsonPointer.parse("/root")

    def test_values_are_detached(self):
        target = {"a": {"deep": [1]}}
        [item] = generate_diffs({}, target)
        target["a"]["deep"].append(2)
        assert item.value == {"deep": [1]}


class TestDiffRecord:
    def test_pointer_for_append(self):
        item = Diff.in_array(DiffOperation.ADD, JsonPointer.parse("/xs"), 3, -1, 1)
        assert str(item.pointer) == "/xs/-"

    def test_as_operation(self):
        move = Diff(DiffOperation.MOVE, 1, path=JsonPointer.parse("/b"), from_path=JsonPointer.parse("/a"))
        assert move.as_operation().to_json() == {"op": "move", "path": "/b", "from": "/a"}
        remove = Diff.in_array(DiffOperation.REMOVE, JsonPointer.empty(), 0, 2, "x")
        assert remove.as_operation().to_json() == {"op": "remove", "path": "/2"}


class TestUnchangedValues:
    def test_collects_equivalent_subtrees(self):
        source = {"a": {"x": 1}, "b": [1, {"k": 2}, 3], "c": 1}
        target = {"a": {"x": 1.0}, "b": [9, {"k": 2}], "c": 2, "d": 0}
        unchanged = unchanged_values(source, target)
        assert list(unchanged) == [
            JsonPointer.parse("/a"),
            JsonPointer.parse("/b/1"),
        ]
        assert unchanged[JsonPointer.parse("/b/1")] == {"k": 2}

    def test_whole_document(self):
        assert unchanged_values([1], [1]) == {JsonPointer.empty(): [1]}

    def test_values_are_detached(self):
        target = {"a": [1]}
        unchanged = unchanged_values({"a": [1]}, target)
        target["a"].append(2)
        assert unchanged[JsonPointer.empty()] == {"a": [1]}


# ===================================================================
# diff()
# ===================================================================


class TestDiff:
    def test_single_add(self):
        assert _ops({"a": 1}, {"a": 1, "b": 2}) == [{"op": "add", "path": "/b", "value": 2}]

    def test_no_changes(self):
        patch = diff({"a": [1, {"b": None}]}, {"a": [1.0, {"b": None}]})
        assert isinstance(patch, JsonPatch)
        assert len(patch) == 0

    def test_root_replace(self):
        assert _ops(1, "one") == [{"op": "replace", "path": "", "value": "one"}]

    def test_member_rename_is_a_move(self):
        assert _ops({"a": {"x": 1}}, {"b": {"x": 1}}) == [
            {"op": "move", "path": "/b", "from": "/a"}
        ]

    def test_array_rotation_is_a_single_move(self):
        source = {"items": [{"id": 1}, {"id": 2}, {"id": 3}]}
        target = {"items": [{"id": 2}, {"id": 3}, {"id": 1}]}
        assert _ops(source, target) == [
            {"op": "move", "path": "/items/-", "from": "/items/0"}
        ]

    def test_array_move_to_front(self):
        assert _ops([2, 3, 1], [1, 2, 3]) == [{"op": "move", "path": "/0", "from": "/2"}]

    def test_move_between_arrays(self):
        source = {"a": [1, {"x": 1}], "b": []}
        target = {"a": [1], "b": [{"x": 1}]}
        assert _ops(source, target) == [{"op": "move", "path": "/b/-", "from": "/a/1"}]

    def test_copy_from_unchanged(self):
        source = {"a": {"x": [1]}}
        target = {"a": {"x": [1]}, "b": {"x": [1]}}
        assert _ops(source, target) == [{"op": "copy", "path": "/b", "from": "/a"}]

    def test_copy_unchanged_disabled(self):
        source = {"a": {"x": [1]}}
        target = {"a": {"x": [1]}, "b": {"x": [1]}}
        assert _ops(source, target, DiffOptions(copy_unchanged=False)) == [
            {"op": "add", "path": "/b", "value": {"x": [1]}}
        ]

    def test_copy_from_earlier_add(self):
        assert _ops({}, {"a": {"k": 1}, "b": {"k": 1}}) == [
            {"op": "add", "path": "/a", "value": {"k": 1}},
            {"op": "copy", "path": "/b", "from": "/a"},
        ]

    def test_empty_containers_are_not_copied(self):
        assert _ops({}, {"a": [], "b": []}) == [
            {"op": "add", "path": "/a", "value": []},
            {"op": "add", "path": "/b", "value": []},
        ]

    def test_scalars_are_not_copied(self):
        assert _ops({"a": 5}, {"a": 5, "b": 5}) == [{"op": "add", "path": "/b", "value": 5}]

    def test_factorize_disabled(self):
        assert _ops({"a": {"x": 1}}, {"b": {"x": 1}}, DiffOptions(factorize=False)) == [
            {"op": "add", "path": "/b", "value": {"x": 1}},
            {"op": "remove", "path": "/a"},
        ]

    def test_ignore_fields(self):
        source = {"a": 1, "meta": {"ts": "2024-01-01", "rev": 1}}
        target = {"a": 2, "meta": {"ts": "2024-02-02", "rev": 1}, "other": None}
        options = DiffOptions(ignore_fields=["/meta/ts", "/other"])
        assert _ops(source, target, options) == [{"op": "replace", "path": "/a", "value": 2}]

    def test_ignore_root(self):
        assert _ops({"a": 1}, {"b": 2}, DiffOptions(ignore_fields=[""])) == []

    def test_ignore_fields_malformed(self):
        with pytest.raises(MalformedPointerError):
            diff({}, {}, DiffOptions(ignore_fields=["no-slash"]))

    def test_inputs_not_mutated(self):
        source = {"a": [1, 2, {"x": [3]}], "b": {"c": 1}}
        target = {"a": [{"x": [3]}, 2], "d": {"c": 1}}
        source_copy, target_copy = copy.deepcopy(source), copy.deepcopy(target)
        patch = diff(source, target)
        patch.apply(source)
        assert source == source_copy
        assert target == target_copy

    def test_deterministic(self):
        source = {"a": [1, 2, 3, 4], "b": {"x": [1, 2]}}
        target = {"a": [4, 3, 2, 1], "c": {"x": [1, 2]}}
        assert diff(source, target) == diff(source, target)

    def test_shared_subtree_in_source(self):
        row = [2]
        patch = diff([row, row], [[2], [0]])
        assert patch.apply([row, row]) == [[2], [0]]
        assert row == [2]

    def test_unusable_move_is_split_back(self, monkeypatch, caplog):
        real = diff_module.factorize_diffs

        def corrupting(diffs, unchanged=None, *, moves=True, pairs=None):
            factorized = real(diffs, unchanged, moves=moves, pairs=pairs)
            if pairs and 1 in pairs:
                factorized[1].from_path = JsonPointer.parse("/nowhere")
            return factorized

        monkeypatch.setattr(diff_module, "factorize_diffs", corrupting)
        source = {"a": {"x": 1}, "b": {"y": 2}}
        target = {"c": {"x": 1}, "d": {"y": 2}}
        with caplog.at_level(logging.DEBUG, logger="jsondelta"):
            ops = _ops(source, target)
        assert ops == [
            {"op": "move", "path": "/c", "from": "/a"},
            {"op": "add", "path": "/d", "value": {"y": 2}},
            {"op": "remove", "path": "/b"},
        ]
        assert "unpairing one move" in caplog.text

    def test_elementary_diffs_when_nothing_replays(self, monkeypatch, caplog):
        def broken(diffs, unchanged=None, *, moves=True, pairs=None):
            bogus = Diff(
                DiffOperation.MOVE,
                None,
                path=JsonPointer.parse("/z"),
                from_path=JsonPointer.parse("/nowhere"),
            )
            return [bogus]

        monkeypatch.setattr(diff_module, "factorize_diffs", broken)
        source = {"a": {"x": 1}}
        target = {"b": {"x": 1}}
        with caplog.at_level(logging.DEBUG, logger="jsondelta"):
            ops = _ops(source, target)
        assert ops == [
            {"op": "add", "path": "/b", "value": {"x": 1}},
            {"op": "remove", "path": "/a"},
        ]
        assert "using elementary diffs" in caplog.text


# ===================================================================
# Round trips
# ===================================================================


_ROW = [2]

ROUND_TRIPS = [
    ({"a": 1}, {"a": 1, "b": 2}),
    ([1, 2, 3, 4, 5], [5, 4, 3, 2, 1]),
    ([1, 1, 2, 2], [2, 2, 1, 1]),
    ([{"a": 1}, 2, [3]], [[3], {"a": 1}, 2]),
    (["a", "b", "c", "d"], ["d", "a", "c", "b", "e"]),
    ({"x": [1, [2, 3]], "y": {"z": [4]}}, {"y": {"z": [4, [2, 3]]}, "x": [1]}),
    (["victim", {}], [{"x": "victim"}]),
    ([], {}),
    ({"a": [1, 2]}, [1, 2]),
    ([[1, 2], [3, 4]], [[3, 4], [1, 2], [1, 2]]),
    ({"a": [{"k": [1]}, {"k": [1]}]}, {"a": [{"k": [1]}], "b": {"k": [1]}, "c": {"k": [1]}}),
    ([1, 2, 3, 4, 5, 6], [6, 1, 7, 3, 2, 4]),
    ({"a": {"b": {"c": [1, 2, 3]}}}, {"a": {"c": [3, 2, 1]}, "b": {"b": {"c": [1, 2, 3]}}}),
    ([{"id": 1, "v": [1]}, {"id": 2}], [{"id": 2}, {"id": 1, "v": [1, 2]}]),
    ([None, True, 1, "1"], ["1", 1.0, True, None, False]),
    ([[], [], [1]], [[1], [], [1], []]),
    ([_ROW, _ROW], [[2], [0]]),
    ([[0], [1], [0], [0, 1]], [[1], 1, [0], [0]]),
    ([[5, 6], [7], {"k": [8, 9]}], [7, [5], {"k": [9]}, 6, 8]),
    ({"a": Decimal("1.5")}, {"a": Decimal("2.25"), "b": [Decimal("1")]}),
    ([Decimal("0.5"), {"n": Decimal("10")}], [{"n": Decimal("10")}, Decimal("0.75")]),
]


class TestRoundTrip:
    @pytest.mark.parametrize(("source", "target"), ROUND_TRIPS)
    @pytest.mark.parametrize(
        "options",
        [DiffOptions(), DiffOptions(factorize=False), DiffOptions(copy_unchanged=False)],
        ids=["default", "unfactorized", "no-unchanged-copies"],
    )
    def test_apply_diff_reproduces_target(self, source, target, options):
        patch = diff(source, target, options)
        assert json_equivalent(patch.apply(source), target)

    @pytest.mark.parametrize(("source", "target"), ROUND_TRIPS)
    def test_wire_form_round_trip(self, source, target):
        patch = diff(source, target)
        restored = JsonPatch.from_json(str(patch))
        assert json_equivalent(restored.apply(source), target)
