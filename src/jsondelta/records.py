"""Elementary difference records shared by the diff generator and the factorizer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .json_pointer import APPEND_TOKEN, JsonPointer
from .operations import (
    AddOperation,
    CopyOperation,
    MoveOperation,
    PatchOperation,
    RemoveOperation,
    ReplaceOperation,
)


class DiffOperation(str, Enum):
    """Add, remove and replace come from node comparison; move and copy from factorization."""

    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
    MOVE = "move"
    COPY = "copy"


@dataclass(slots=True)
class Diff:
    """One elementary difference between two documents.

    Diffs on array elements carry ``array_path`` plus the element's index in
    the source array (``first_index``) and its position in the array as it
    is being patched (``second_index``, ``-1`` for an append).  Other diffs
    carry a plain ``path``.
    """

    operation: DiffOperation
    value: Any
    path: JsonPointer | None = None
    array_path: JsonPointer | None = None
    first_index: int = -1
    second_index: int = -1
    from_path: JsonPointer | None = None

    @classmethod
    def at_path(cls, operation: DiffOperation, path: JsonPointer, value: Any) -> Diff:
        return cls(operation, value, path=path)

    @classmethod
    def in_array(
        cls,
        operation: DiffOperation,
        array_path: JsonPointer,
        first_index: int,
        second_index: int,
        value: Any,
    ) -> Diff:
        return cls(
            operation,
            value,
            array_path=array_path,
            first_index=first_index,
            second_index=second_index,
        )

    @property
    def pointer(self) -> JsonPointer:
        """The pointer this diff operates on."""
        if self.array_path is None:
            return self.path
        if self.second_index == -1:
            return self.array_path.append(APPEND_TOKEN)
        return self.array_path.append(self.second_index)

    def as_operation(self) -> PatchOperation:
        """Convert this diff into a patch operation."""
        if self.operation is DiffOperation.ADD:
            return AddOperation(path=self.pointer, value=self.value)
        if self.operation is DiffOperation.REMOVE:
            return RemoveOperation(path=self.pointer)
        if self.operation is DiffOperation.REPLACE:
            return ReplaceOperation(path=self.pointer, value=self.value)
        if self.operation is DiffOperation.MOVE:
            return MoveOperation(path=self.pointer, from_=self.from_path)
        return CopyOperation(path=self.pointer, from_=self.from_path)


__all__ = ["Diff", "DiffOperation"]
