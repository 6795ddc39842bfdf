"""Structural diff of two JSON documents.

:func:`diff` returns a :class:`~jsondelta.patch.JsonPatch` that turns the
source document into the target document.  It works in three steps:

1. :func:`generate_diffs` walks both documents and emits elementary add,
   remove and replace differences.  Object members are compared by key;
   arrays are aligned on their longest common subsequence.
2. :func:`~jsondelta.factorize.factorize_diffs` merges add/remove pairs with
   equivalent values into moves and turns repeated adds into copies.
3. The result is replayed against a private copy of the source.  Copies whose
   source no longer holds the value become adds again.  If the replay fails or
   does not reproduce the target, the offending move is split back into its
   add and remove and the replay is tried again.

The output is deterministic: the same two documents always produce the same
patch.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from . import log
from .equivalence import CONTAINER_KINDS, copy_json, json_equivalent, json_kind
from .errors import JsonPatchError
from .factorize import factorize_diffs, find_pairs
from .json_pointer import MISSING, JsonPointer
from .lcs import longest_common_subsequence
from .operations import AddOperation, PatchOperation, RemoveOperation
from .patch import JsonPatch
from .records import Diff, DiffOperation

# ---------------------------------------------------------------------------
# Diff generation
# ---------------------------------------------------------------------------


def generate_diffs(source: Any, target: Any, pointer: JsonPointer | None = None) -> list[Diff]:
    """Compute the ordered elementary differences between *source* and *target*.

    Object differences are generated in a fixed order: added members, removed
    members, then differences inside common members.  Later steps rely on
    this order.
    """
    diffs: list[Diff] = []
    _generate(diffs, pointer or JsonPointer.empty(), source, target)
    return diffs


def _generate(diffs: list[Diff], pointer: JsonPointer, first: Any, second: Any) -> None:
    if json_equivalent(first, second):
        return
    kind = json_kind(first)
    if kind != json_kind(second) or kind not in CONTAINER_KINDS:
        diffs.append(Diff.at_path(DiffOperation.REPLACE, pointer, copy_json(second)))
        return
    if kind == "object":
        _generate_object(diffs, pointer, first, second)
    else:
        _generate_array(diffs, pointer, first, second)


def _generate_object(diffs: list[Diff], pointer: JsonPointer, first: dict, second: dict) -> None:
    for key in second:
        if key not in first:
            diffs.append(
                Diff.at_path(DiffOperation.ADD, pointer.append(key), copy_json(second[key]))
            )
    for key in first:
        if key not in second:
            diffs.append(
                Diff.at_path(DiffOperation.REMOVE, pointer.append(key), copy_json(first[key]))
            )
    for key in first:
        if key in second:
            _generate(diffs, pointer.append(key), first[key], second[key])


def _generate_array(diffs: list[Diff], pointer: JsonPointer, first: list, second: list) -> None:
    lcs = longest_common_subsequence(first, second)
    first_size, second_size, lcs_size = len(first), len(second), len(lcs)
    # Invariant: the array being patched holds second[:j] followed by first[i:].
    i = j = k = 0
    while i < first_size or j < second_size:
        if i >= first_size:
            # appended elements
            diffs.append(
                Diff.in_array(DiffOperation.ADD, pointer, i, -1, copy_json(second[j]))
            )
            j += 1
            continue
        first_item = first[i]
        second_item = second[j] if j < second_size else MISSING
        lcs_item = lcs[k] if k < lcs_size else MISSING
        if json_equivalent(first_item, lcs_item):
            if json_equivalent(first_item, second_item):
                # common subsequence element
                i += 1
                j += 1
                k += 1
            else:
                # inserted element
                diffs.append(
                    Diff.in_array(DiffOperation.ADD, pointer, i, j, copy_json(second_item))
                )
                j += 1
        elif second_item is not MISSING and not json_equivalent(second_item, lcs_item):
            # changed element
            if i == j:
                _generate(diffs, pointer.append(i), first_item, second_item)
            else:
                diffs.append(
                    Diff.in_array(DiffOperation.REPLACE, pointer, i, j, copy_json(second_item))
                )
            i += 1
            j += 1
        else:
            # removed element
            diffs.append(
                Diff.in_array(DiffOperation.REMOVE, pointer, i, j, copy_json(first_item))
            )
            i += 1


# ---------------------------------------------------------------------------
# Unchanged values
# ---------------------------------------------------------------------------


def unchanged_values(source: Any, target: Any) -> dict[JsonPointer, Any]:
    """Map pointers to the subtrees that are equivalent in both documents.

    Objects are compared on their common members, arrays position by
    position up to the shorter length.  Entries appear in walk order.
    """
    unchanged: dict[JsonPointer, Any] = {}
    _compute_unchanged(unchanged, JsonPointer.empty(), source, target)
    return unchanged


def _compute_unchanged(
    unchanged: dict[JsonPointer, Any], pointer: JsonPointer, first: Any, second: Any
) -> None:
    if json_equivalent(first, second):
        unchanged[pointer] = copy_json(second)
        return
    kind = json_kind(first)
    if kind != json_kind(second):
        return
    if kind == "object":
        for key in first:
            if key in second:
                _compute_unchanged(unchanged, pointer.append(key), first[key], second[key])
    elif kind == "array":
        for index in range(min(len(first), len(second))):
            _compute_unchanged(unchanged, pointer.append(index), first[index], second[index])


# ---------------------------------------------------------------------------
# Public API: diff
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class DiffOptions:
    """Options for :func:`diff`.

    Attributes
    ----------
    factorize : bool
        Merge add/remove pairs into moves and repeated adds into copies.
        When ``False`` the patch only contains add, remove and replace.
    copy_unchanged : bool
        Source copies from subtrees that are identical in both documents.
    ignore_fields : Sequence[str]
        JSON Pointers removed from both documents before comparing them.
        Meant for object members such as timestamps or revision ids.
    """

    factorize: bool = True
    copy_unchanged: bool = True
    ignore_fields: Sequence[str] = field(default_factory=tuple)


class _Unreproducible(Exception):
    """A factorized diff list does not replay to the target document.

    ``position`` is the index of the failing operation, or ``None`` when
    every operation applied but the result differs from the target.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        super().__init__(message)
        self.position = position


def _strip_fields(doc: Any, pointers: Sequence[JsonPointer]) -> Any:
    for pointer in pointers:
        if pointer.exists(doc):
            doc = RemoveOperation(path=pointer).apply(doc)
    return doc


def _settle(source: Any, target: Any, diffs: list[Diff]) -> list[PatchOperation]:
    """Replay *diffs* on a copy of *source* and return the patch operations.

    Copies whose ``from`` does not hold an equivalent value at that point
    are emitted as adds.
    """
    doc = copy_json(source)
    operations: list[PatchOperation] = []
    for position, item in enumerate(diffs):
        operation = item.as_operation()
        if item.operation is DiffOperation.COPY and not json_equivalent(
            item.from_path.resolve(doc), item.value
        ):
            operation = AddOperation(path=item.pointer, value=item.value)
        try:
            doc = operation._apply(doc)
        except JsonPatchError as exc:
            raise _Unreproducible(f"{operation} failed: {exc}", position) from exc
        operations.append(operation)
    if not json_equivalent(doc, target):
        raise _Unreproducible("replayed document differs from the target")
    return operations


def _unpair_culprit(
    diffs: list[Diff], pairs: Mapping[int, int], factorized: list[Diff], position: int | None
) -> dict[int, int]:
    """Drop the pair of the last move at or before *position*.

    When no move precedes the failure every pair is dropped.
    """
    end = len(factorized) if position is None else position + 1
    moves = sum(1 for item in factorized[:end] if item.operation is DiffOperation.MOVE)
    if not moves:
        return {}
    additions = sorted(index for index in pairs if diffs[index].operation is DiffOperation.ADD)
    culprit = additions[moves - 1]
    partner = pairs[culprit]
    return {key: value for key, value in pairs.items() if key not in (culprit, partner)}


def _factorize(
    source: Any, target: Any, diffs: list[Diff], unchanged: Mapping[JsonPointer, Any] | None
) -> list[PatchOperation]:
    pairs = find_pairs(diffs)
    while True:
        factorized = factorize_diffs(diffs, unchanged, pairs=pairs)
        try:
            return _settle(source, target, factorized)
        except _Unreproducible as exc:
            if not pairs:
                log.warning("factorized diff discarded, using elementary diffs: %s", exc)
                return [item.as_operation() for item in diffs]
            log.debug("factorized diff discarded, unpairing one move: %s", exc)
            pairs = _unpair_culprit(diffs, pairs, factorized, exc.position)


def diff(source: Any, target: Any, options: DiffOptions | None = None) -> JsonPatch:
    """Return a JSON Patch turning *source* into *target*.

    Neither document is modified.  Applying the result to *source* yields a
    document equivalent to *target*.

    Raises
    ------
    MalformedPointerError
        If ``options.ignore_fields`` holds an invalid pointer.
    """
    opts = options or DiffOptions()

    if opts.ignore_fields:
        ignored = [JsonPointer.parse(path) for path in opts.ignore_fields]
        if any(pointer.is_root() for pointer in ignored):
            return JsonPatch()
        source = _strip_fields(source, ignored)
        target = _strip_fields(target, ignored)

    diffs = generate_diffs(source, target)
    if not opts.factorize:
        return JsonPatch(item.as_operation() for item in diffs)

    unchanged = unchanged_values(source, target) if opts.copy_unchanged else None
    return JsonPatch(_factorize(source, target, diffs, unchanged))


__all__ = [
    "Diff",
    "DiffOperation",
    "DiffOptions",
    "diff",
    "generate_diffs",
    "unchanged_values",
]
