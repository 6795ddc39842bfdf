"""Turn elementary diffs into moves and copies.

An ``add`` and a ``remove`` carrying equivalent values become a single
``move``.  Because the two halves of a pair usually sit at different
positions of the diff list, merging them changes when the removal happens:

* if the add comes first, the removal is *advanced* to the add's position;
  array diffs after it that address the source array by ``first_index``
  shift down by one;
* if the remove comes first, the removal is *deferred* until the add; the
  element stays in the array in the meantime, so later destinations
  (``second_index``) in that array shift up by one.

:class:`ArrayRemovals` keeps track of both adjustments per array.  They apply
to every array index along a pointer, not only to the last one: a diff below
``/3`` must follow element 3 of the root array wherever it currently sits.

Adds of non-empty containers that repeat an earlier add, or a subtree that
is unchanged between the two documents, become ``copy`` operations.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from .equivalence import is_container, json_equivalent
from .json_pointer import JsonPointer, array_index
from .records import Diff, DiffOperation


class ArrayRemovals:
    """Array removes that no longer happen at their original position."""

    def __init__(self) -> None:
        self._advanced: dict[JsonPointer, list[int]] = {}
        self._deferred: dict[JsonPointer, list[int]] = {}

    def advance(self, array_path: JsonPointer, first_index: int) -> None:
        self._advanced.setdefault(array_path, []).append(first_index)

    def defer(self, array_path: JsonPointer, second_index: int) -> None:
        self._deferred.setdefault(array_path, []).append(second_index)

    def undefer(self, array_path: JsonPointer, second_index: int) -> None:
        self._deferred[array_path].remove(second_index)

    def tracks(self, array_path: JsonPointer) -> bool:
        return array_path in self._advanced or array_path in self._deferred

    def adjust_first(self, array_path: JsonPointer, first_index: int) -> int:
        """Shift a source index down past the removes already performed."""
        if first_index == -1:
            return -1
        advanced = self._advanced.get(array_path, ())
        return first_index - sum(1 for index in advanced if first_index > index)

    def adjust_second(self, array_path: JsonPointer, second_index: int) -> int:
        """Shift a destination index up past the removes still pending."""
        if second_index == -1:
            return -1
        deferred = self._deferred.get(array_path, ())
        return second_index + sum(1 for index in deferred if second_index >= index)

    def position(
        self, array_path: JsonPointer, index: int, state: tuple[int, int] | None
    ) -> int:
        """Return where source element *index* currently sits in the array.

        *state* is the ``(first_index, second_index)`` the array walk had
        reached, or ``None`` once the walk has passed the element.  An element
        the walk has passed sits at its target position.
        """
        if state is None or state[1] == -1 or index < state[0]:
            return self.adjust_second(array_path, index)
        first, second = state
        return (
            self.adjust_first(array_path, index)
            + self.adjust_second(array_path, second)
            - self.adjust_first(array_path, first)
        )


def _walk_state(array_path: JsonPointer, at: Diff, ahead: bool) -> tuple[int, int] | None:
    """The state of the walk over *array_path* when *at* is emitted."""
    if at.array_path == array_path:
        return at.first_index, at.second_index
    tokens = (at.path if at.array_path is None else at.array_path).tokens
    depth = len(array_path.tokens)
    if len(tokens) > depth and tokens[:depth] == array_path.tokens:
        index = array_index(tokens[depth])
        if index is not None:
            # nested differences are generated where both indices agree
            return index, index
    # a later subtree has not been walked yet; an earlier one is done
    return (0, 0) if ahead else None


def _rebase(
    removals: ArrayRemovals, pointer: JsonPointer, at: Diff, ahead: bool = True
) -> JsonPointer:
    """Rewrite the array indices along *pointer* for the moment *at* applies.

    *ahead* tells whether *pointer* was generated after *at*.
    """
    tokens = list(pointer.tokens)
    for depth, token in enumerate(pointer.tokens):
        index = array_index(token)
        if index is None:
            continue
        array_path = JsonPointer(pointer.tokens[:depth])
        if not removals.tracks(array_path) and at.array_path != array_path:
            continue
        state = _walk_state(array_path, at, ahead)
        tokens[depth] = str(removals.position(array_path, index, state))
    return JsonPointer(tokens)


def find_pairs(diffs: list[Diff]) -> dict[int, int]:
    """Pair each add with the first unpaired remove carrying an equivalent value.

    The result maps list positions both ways: ``pairs[add] == remove`` and
    ``pairs[remove] == add``.
    """
    pairs: dict[int, int] = {}
    for add_index, addition in enumerate(diffs):
        if addition.operation is not DiffOperation.ADD:
            continue
        for remove_index, removal in enumerate(diffs):
            if removal.operation is not DiffOperation.REMOVE or remove_index in pairs:
                continue
            if json_equivalent(removal.value, addition.value):
                pairs[add_index] = remove_index
                pairs[remove_index] = add_index
                break
    return pairs


def _move_source(
    removals: ArrayRemovals, addition: Diff, removal: Diff, ahead: bool
) -> JsonPointer:
    if removal.array_path is None:
        return _rebase(removals, removal.path, addition, ahead)
    array_path = _rebase(removals, removal.array_path, addition, ahead)
    if ahead:
        state = _walk_state(removal.array_path, addition, ahead)
        index = removals.position(removal.array_path, removal.first_index, state)
    else:
        index = removals.adjust_second(removal.array_path, removal.second_index)
    return array_path.append(index)


def _convert_pairs(diffs: list[Diff], pairs: Mapping[int, int]) -> list[Diff]:
    removals = ArrayRemovals()
    factorized: list[Diff] = []
    for index, item in enumerate(diffs):
        partner = pairs.get(index)
        if item.operation is DiffOperation.REMOVE and partner is not None:
            # dropped: the paired add performs it as a move
            if item.array_path is not None and index < partner:
                removals.defer(item.array_path, item.second_index)
            continue
        if item.operation is DiffOperation.ADD and partner is not None:
            removal = diffs[partner]
            ahead = index < partner
            if not ahead and removal.array_path is not None:
                removals.undefer(removal.array_path, removal.second_index)
            item.operation = DiffOperation.MOVE
            item.from_path = _move_source(removals, item, removal, ahead)
            if ahead and removal.array_path is not None:
                removals.advance(removal.array_path, removal.first_index)
        if item.array_path is None:
            item.path = _rebase(removals, item.path, item)
        else:
            item.second_index = removals.adjust_second(item.array_path, item.second_index)
            item.array_path = _rebase(removals, item.array_path, item)
        factorized.append(item)
    return factorized


def _copy_source(unchanged: Mapping[JsonPointer, Any], value: Any) -> JsonPointer | None:
    for pointer, unchanged_value in unchanged.items():
        if json_equivalent(unchanged_value, value):
            return pointer
    return None


def _upgrade_copies(diffs: list[Diff], unchanged: Mapping[JsonPointer, Any]) -> None:
    sources: list[Diff] = []
    for item in diffs:
        if item.operation is not DiffOperation.ADD:
            continue
        if not is_container(item.value) or not item.value:
            continue
        earlier = next((s for s in sources if json_equivalent(s.value, item.value)), None)
        if earlier is not None:
            item.operation = DiffOperation.COPY
            item.from_path = earlier.pointer
            continue
        pointer = _copy_source(unchanged, item.value)
        if pointer is not None:
            item.operation = DiffOperation.COPY
            item.from_path = pointer
            continue
        # "/-" does not address the appended element afterwards
        if item.array_path is None or item.second_index != -1:
            sources.append(item)


def factorize_diffs(
    diffs: list[Diff],
    unchanged: Mapping[JsonPointer, Any] | None = None,
    *,
    moves: bool = True,
    pairs: Mapping[int, int] | None = None,
) -> list[Diff]:
    """Merge add/remove pairs into moves and repeated adds into copies.

    *diffs* is not modified; the returned list holds new :class:`Diff`
    records.  With ``moves=False`` only the copy upgrade runs.  *pairs*
    replaces the pairing :func:`find_pairs` would compute.
    *unchanged* maps pointers to subtrees equal in both documents (see
    :func:`~jsondelta.diff.unchanged_values`) and makes them copy sources.
    """
    working = [dataclasses.replace(item) for item in diffs]
    if pairs is None:
        pairs = find_pairs(working) if moves else {}
    factorized = _convert_pairs(working, pairs)
    _upgrade_copies(factorized, unchanged or {})
    return factorized


__all__ = ["ArrayRemovals", "factorize_diffs", "find_pairs"]
