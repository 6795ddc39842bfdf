"""The six RFC 6902 JSON Patch operations.

Each operation is a frozen pydantic model that validates and serialises the
wire form of one patch element.  :meth:`PatchOperation.apply` is pure: the
input document is copied before it is touched, so a failed or successful
operation never mutates it.

Deviations from a literal reading of RFC 6902, kept for compatibility:

* ``move`` does not reject a ``from`` that is a prefix of ``path``; the removal
  happens first and the addition is evaluated against the resulting document.
* numbers are compared by value in ``test`` (``1`` matches ``1.0``).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .equivalence import copy_json, dump_json, json_equivalent
from .errors import (
    NoSuchIndexError,
    NoSuchParentError,
    NoSuchPathError,
    NotAnIndexError,
    ParentNotContainerError,
    ValueMismatchError,
)
from .json_pointer import APPEND_TOKEN, MISSING, JsonPointer, array_index

# ---------------------------------------------------------------------------
# Document helpers (operate in place on a private working copy)
# ---------------------------------------------------------------------------


def _apply_add(doc: Any, pointer: JsonPointer, value: Any) -> Any:
    """Add *value* at *pointer* and return the (possibly new) root."""
    if pointer.is_root():
        return value
    parent = pointer.parent().resolve(doc)
    if parent is MISSING:
        raise NoSuchParentError(pointer)
    token = pointer.last
    if isinstance(parent, dict):
        parent[token] = value
    elif isinstance(parent, list):
        if token == APPEND_TOKEN:
            parent.append(value)
            return doc
        index = array_index(token)
        if index is None:
            raise NotAnIndexError(pointer)
        if index > len(parent):
            raise NoSuchIndexError(pointer)
        parent.insert(index, value)
    else:
        raise ParentNotContainerError(pointer)
    return doc


def _locate(doc: Any, pointer: JsonPointer) -> tuple[Any, str | int]:
    """Return ``(container, key)`` for an existing, non-root *pointer*."""
    parent = pointer.parent().resolve(doc)
    token = pointer.last
    if isinstance(parent, dict):
        if token in parent:
            return parent, token
    elif isinstance(parent, list):
        if token == APPEND_TOKEN:
            raise NotAnIndexError(pointer)
        index = array_index(token)
        if index is not None and index < len(parent):
            return parent, index
    raise NoSuchPathError(pointer)


def _resolve_existing(doc: Any, pointer: JsonPointer) -> Any:
    if pointer.is_root():
        if doc is MISSING:
            raise NoSuchPathError(pointer)
        return doc
    container, key = _locate(doc, pointer)
    return container[key]


def _apply_remove(doc: Any, pointer: JsonPointer) -> tuple[Any, Any]:
    """Remove the value at *pointer*; return ``(new_root, removed_value)``."""
    if pointer.is_root():
        return MISSING, _resolve_existing(doc, pointer)
    container, key = _locate(doc, pointer)
    return doc, container.pop(key)


def _apply_replace(doc: Any, pointer: JsonPointer, value: Any) -> Any:
    if pointer.is_root():
        _resolve_existing(doc, pointer)
        return value
    container, key = _locate(doc, pointer)
    container[key] = value
    return doc


# ---------------------------------------------------------------------------
# Operation models
# ---------------------------------------------------------------------------


class PatchOperation(BaseModel):
    """Base class of the six patch operations."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    op: str
    path: JsonPointer

    def apply(self, doc: Any) -> Any:
        """Apply this operation and return the new document."""
        return self._apply(copy_json(doc))

    def _apply(self, doc: Any) -> Any:
        """Apply this operation to *doc*, which the caller owns and may lose."""
        raise NotImplementedError

    def to_json(self) -> dict[str, Any]:
        """Return the wire form of this operation."""
        return self.model_dump(mode="json", by_alias=True)

    def __str__(self) -> str:
        return dump_json(self.to_json())


class _ValueOperation(PatchOperation):
    value_: Any = Field(alias="value")

    @field_validator("value_")
    @classmethod
    def _detach_value(cls, value: Any) -> Any:
        return copy_json(value)

    @property
    def value(self) -> Any:
        """A fresh copy of the carried value."""
        return copy_json(self.value_)

    def to_json(self) -> dict[str, Any]:
        # "json" mode would turn a Decimal into a string
        data = self.model_dump(mode="json", by_alias=True, exclude={"value_"})
        data["value"] = self.value
        return data


class _FromOperation(PatchOperation):
    from_: JsonPointer = Field(alias="from")


class AddOperation(_ValueOperation):
    op: Literal["add"] = "add"

    def _apply(self, doc: Any) -> Any:
        return _apply_add(doc, self.path, self.value)


class RemoveOperation(PatchOperation):
    op: Literal["remove"] = "remove"

    def _apply(self, doc: Any) -> Any:
        doc, _ = _apply_remove(doc, self.path)
        return doc


class ReplaceOperation(_ValueOperation):
    op: Literal["replace"] = "replace"

    def _apply(self, doc: Any) -> Any:
        return _apply_replace(doc, self.path, self.value)


class MoveOperation(_FromOperation):
    op: Literal["move"] = "move"

    def _apply(self, doc: Any) -> Any:
        _resolve_existing(doc, self.from_)
        if self.from_ == self.path:
            return doc
        doc, moved = _apply_remove(doc, self.from_)
        return _apply_add(doc, self.path, moved)


class CopyOperation(_FromOperation):
    op: Literal["copy"] = "copy"

    def _apply(self, doc: Any) -> Any:
        copied = copy_json(_resolve_existing(doc, self.from_))
        return _apply_add(doc, self.path, copied)


class TestOperation(_ValueOperation):
    __test__ = False  # not a pytest test class

    op: Literal["test"] = "test"

    def _apply(self, doc: Any) -> Any:
        tested = _resolve_existing(doc, self.path)
        if not json_equivalent(tested, self.value_):
            raise ValueMismatchError(self.path)
        return doc


AnyOperation = Annotated[
    AddOperation
    | RemoveOperation
    | ReplaceOperation
    | MoveOperation
    | CopyOperation
    | TestOperation,
    Field(discriminator="op"),
]


__all__ = [
    "AddOperation",
    "AnyOperation",
    "CopyOperation",
    "MoveOperation",
    "PatchOperation",
    "RemoveOperation",
    "ReplaceOperation",
    "TestOperation",
]
