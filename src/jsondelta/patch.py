"""RFC 6902 JSON Patch documents.

:class:`JsonPatch` is an immutable, ordered sequence of operations.  Applying
it is sequential and fail-fast: the first failing operation raises, later
operations never run, and the caller's document is left untouched because
every application works on a private copy.

Key features:

* **Wire format** -- :meth:`JsonPatch.from_json` validates a JSON array of
  operation objects with pydantic; unknown members are ignored and, for
  duplicate members, the last one wins.  Invalid input raises
  :class:`~jsondelta.errors.InvalidPatchError` naming the offending element.
* **Policy enforcement** -- :func:`apply_patch` accepts an optional
  :class:`PatchPolicy` limiting operation kinds, patch size and path depth.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, overload

from pydantic import TypeAdapter, ValidationError

from . import log
from .equivalence import copy_json, dump_json
from .errors import InvalidPatchError, JsonPatchError, PolicyViolationError
from .json_pointer import APPEND_TOKEN
from .operations import AnyOperation, PatchOperation

_OPERATION_ADAPTER: TypeAdapter[PatchOperation] = TypeAdapter(AnyOperation)

# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PatchPolicy:
    """Safety rails for patch application.

    Attributes
    ----------
    allow_remove : bool
        Whether ``remove`` operations are permitted.  ``move`` is always
        permitted since it does not lose data.
    allow_append : bool
        Whether ``/-`` (array append) destinations are permitted.
    max_ops : int | None
        Maximum number of operations in a single patch, or ``None``.
    max_path_depth : int | None
        Maximum number of reference tokens in any ``path`` or ``from``
        pointer, or ``None``.
    """

    allow_remove: bool = True
    allow_append: bool = True
    max_ops: int | None = None
    max_path_depth: int | None = None


def _validate_policy(patch: JsonPatch, policy: PatchPolicy) -> None:
    """Check that *patch* conforms to *policy*.

    Raises :class:`PolicyViolationError` on the first violation found.
    """
    if policy.max_ops is not None and len(patch) > policy.max_ops:
        raise PolicyViolationError(
            f"Patch contains {len(patch)} operations, "
            f"but policy allows at most {policy.max_ops}"
        )
    for operation in patch:
        if operation.op == "remove" and not policy.allow_remove:
            raise PolicyViolationError("Remove operations are not allowed by the current policy")
        if (
            not policy.allow_append
            and operation.op in ("add", "move", "copy")
            and operation.path.last == APPEND_TOKEN
        ):
            raise PolicyViolationError(
                "Append (/-) operations are not allowed by the current policy"
            )
        if policy.max_path_depth is None:
            continue
        pointers = [operation.path]
        if hasattr(operation, "from_"):
            pointers.append(operation.from_)
        for pointer in pointers:
            depth = len(pointer.tokens)
            if depth > policy.max_path_depth:
                raise PolicyViolationError(
                    f"Path {str(pointer)!r} has depth {depth}, "
                    f"exceeding policy max_path_depth={policy.max_path_depth}"
                )


# ---------------------------------------------------------------------------
# JsonPatch
# ---------------------------------------------------------------------------


class JsonPatch(Sequence[PatchOperation]):
    """An immutable, ordered list of JSON Patch operations."""

    __slots__ = ("_operations",)

    def __init__(self, operations: Iterable[PatchOperation] = ()) -> None:
        ops = tuple(operations)
        for op in ops:
            if not isinstance(op, PatchOperation):
                raise TypeError(f"Expected PatchOperation, got {type(op).__name__}")
        self._operations: tuple[PatchOperation, ...] = ops

    @classmethod
    def from_json(cls, data: Any) -> JsonPatch:
        """Build a patch from its wire form.

        *data* may be a JSON string or bytes, a list of operation dicts, a
        single operation dict, or a dict wrapping the list under a
        ``"patches"`` key.

        Raises
        ------
        InvalidPatchError
            If *data* is not a valid JSON Patch.
        """
        if isinstance(data, (str, bytes, bytearray)):
            try:
                data = json.loads(data)
            except ValueError as exc:
                raise InvalidPatchError(f"Cannot parse patch as JSON: {exc}") from exc

        if isinstance(data, dict):
            data = data["patches"] if "patches" in data else [data]

        if not isinstance(data, (list, tuple)):
            raise InvalidPatchError(
                f"A JSON Patch must be an array of operations, got {type(data).__name__}"
            )

        operations: list[PatchOperation] = []
        for index, item in enumerate(data):
            if isinstance(item, PatchOperation):
                operations.append(item)
                continue
            try:
                operations.append(_OPERATION_ADAPTER.validate_python(item))
            except ValidationError as exc:
                raise InvalidPatchError(_describe(exc), index=index) from exc
        return cls(operations)

    def to_json(self) -> list[dict[str, Any]]:
        """Return the wire form: a list of operation dicts."""
        return [op.to_json() for op in self._operations]

    def apply(self, doc: Any) -> Any:
        """Apply all operations in order and return the resulting document.

        The input is never mutated.  The first failing operation's error is
        raised; operations after it are not invoked.
        """
        result = copy_json(doc)
        for index, operation in enumerate(self._operations):
            try:
                result = operation._apply(result)
            except JsonPatchError as exc:
                log.debug("operation #%d (%s) failed: %s", index, operation, exc)
                raise
        return result

    # -- sequence protocol -------------------------------------------------

    @overload
    def __getitem__(self, index: int) -> PatchOperation: ...

    @overload
    def __getitem__(self, index: slice) -> JsonPatch: ...

    def __getitem__(self, index: int | slice) -> PatchOperation | JsonPatch:
        if isinstance(index, slice):
            return JsonPatch(self._operations[index])
        return self._operations[index]

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[PatchOperation]:
        return iter(self._operations)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonPatch):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def _key(self) -> tuple[str, ...]:
        # JSON text, so 1 and true differ as they do on the wire
        return tuple(dump_json(op.to_json(), sort_keys=True) for op in self._operations)

    def __repr__(self) -> str:
        return f"JsonPatch({list(self._operations)!r})"

    def __str__(self) -> str:
        return dump_json(self.to_json())


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    msg = first.get("msg", "invalid operation")
    return f"Invalid patch operation: {loc + ': ' if loc else ''}{msg}"


# ---------------------------------------------------------------------------
# Public API: apply_patch
# ---------------------------------------------------------------------------


def apply_patch(
    doc: Any,
    patch: JsonPatch | Any,
    *,
    policy: PatchPolicy | None = None,
) -> Any:
    """Apply *patch* to *doc* and return the result.

    The input *doc* is **never mutated**.

    Parameters
    ----------
    doc
        The document to patch.
    patch
        A :class:`JsonPatch`, or anything :meth:`JsonPatch.from_json`
        accepts.
    policy
        Optional safety policy.  See :class:`PatchPolicy`.

    Raises
    ------
    InvalidPatchError
        If *patch* cannot be read as a JSON Patch.
    PolicyViolationError
        If the patch violates the active policy.
    JsonPatchError
        If any operation fails (missing path, bad index, failed test, ...).
    """
    if not isinstance(patch, JsonPatch):
        patch = JsonPatch.from_json(patch)
    if policy is not None:
        _validate_policy(patch, policy)
    return patch.apply(doc)


__all__ = ["JsonPatch", "PatchPolicy", "apply_patch"]
