"""RFC 6901 JSON Pointer.

:class:`JsonPointer` is an immutable sequence of reference tokens.  It parses
and renders the string form, resolves against a document, and builds new
pointers with :meth:`~JsonPointer.parent` and :meth:`~JsonPointer.append`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import Any

from pydantic_core import core_schema

from .errors import MalformedPointerError

APPEND_TOKEN = "-"

_BAD_ESCAPE = re.compile(r"~(?![01])")
_ARRAY_INDEX = re.compile(r"0|[1-9][0-9]*")


class _Missing:
    """Result of resolving a pointer that does not exist in a document."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Missing:
        return self


MISSING: Any = _Missing()


def escape_json_pointer_token(token: str) -> str:
    """Escape a single JSON Pointer token (RFC 6901)."""
    return token.replace("~", "~0").replace("/", "~1")


def unescape_json_pointer_token(token: str) -> str:
    """Unescape a single JSON Pointer token (RFC 6901).

    Raises :class:`MalformedPointerError` for a ``~`` not followed by ``0``
    or ``1``.
    """
    if _BAD_ESCAPE.search(token):
        raise MalformedPointerError(f"Invalid escape sequence in JSON Pointer token: {token!r}")
    return token.replace("~1", "/").replace("~0", "~")


def parse_json_pointer(path: str) -> list[str]:
    """Split a JSON Pointer into unescaped tokens.

    The root pointer ``""`` returns an empty list.
    """
    if path == "":
        return []
    if not path.startswith("/"):
        raise MalformedPointerError(f"JSON Pointer must start with '/' or be empty, got: {path!r}")
    return [unescape_json_pointer_token(tok) for tok in path[1:].split("/")]


def build_json_pointer(tokens: Iterable[str]) -> str:
    """Build a JSON Pointer string from raw tokens."""
    return "".join("/" + escape_json_pointer_token(token) for token in tokens)


def array_index(token: str) -> int | None:
    """Return *token* as an array index, or ``None`` if it is not one.

    Only the canonical decimal form is accepted: no sign, no leading zeros.
    """
    if _ARRAY_INDEX.fullmatch(token):
        return int(token)
    return None


class JsonPointer:
    """An immutable JSON Pointer."""

    __slots__ = ("_tokens",)

    def __init__(self, tokens: Iterable[str | int] = ()) -> None:
        self._tokens: tuple[str, ...] = tuple(str(token) for token in tokens)

    @classmethod
    def parse(cls, text: str) -> JsonPointer:
        """Parse the string form of a pointer."""
        return cls(parse_json_pointer(text))

    @classmethod
    def of(cls, *tokens: str | int) -> JsonPointer:
        return cls(tokens)

    @classmethod
    def empty(cls) -> JsonPointer:
        return _ROOT

    # -- structure ---------------------------------------------------------

    @property
    def tokens(self) -> tuple[str, ...]:
        return self._tokens

    @property
    def last(self) -> str | None:
        """The final reference token, or ``None`` for the root pointer."""
        return self._tokens[-1] if self._tokens else None

    def is_root(self) -> bool:
        return not self._tokens

    def parent(self) -> JsonPointer:
        """Return the pointer without its last token (the root is its own parent)."""
        if not self._tokens:
            return self
        return JsonPointer(self._tokens[:-1])

    def append(self, other: str | int | JsonPointer) -> JsonPointer:
        """Return a new pointer with *other* appended."""
        if isinstance(other, JsonPointer):
            return JsonPointer(self._tokens + other._tokens)
        return JsonPointer((*self._tokens, str(other)))

    # -- resolution --------------------------------------------------------

    def resolve(self, doc: Any) -> Any:
        """Return the value addressed in *doc*, or :data:`MISSING`."""
        current = doc
        for token in self._tokens:
            current = _child(current, token)
            if current is MISSING:
                break
        return current

    def exists(self, doc: Any) -> bool:
        return self.resolve(doc) is not MISSING

    # -- dunder ------------------------------------------------------------

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonPointer):
            return NotImplemented
        return self._tokens == other._tokens

    def __hash__(self) -> int:
        return hash(self._tokens)

    def __str__(self) -> str:
        return build_json_pointer(self._tokens)

    def __repr__(self) -> str:
        return f"JsonPointer({str(self)!r})"

    # -- pydantic ----------------------------------------------------------

    @classmethod
    def _validate(cls, value: Any) -> JsonPointer:
        if isinstance(value, JsonPointer):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        raise ValueError(f"JSON Pointer must be a string, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


_ROOT = JsonPointer()


def _child(node: Any, token: str) -> Any:
    if isinstance(node, dict):
        return node.get(token, MISSING)
    if isinstance(node, list):
        index = array_index(token)
        if index is None or index >= len(node):
            return MISSING
        return node[index]
    return MISSING


__all__ = [
    "APPEND_TOKEN",
    "MISSING",
    "JsonPointer",
    "array_index",
    "build_json_pointer",
    "escape_json_pointer_token",
    "parse_json_pointer",
    "unescape_json_pointer_token",
]
