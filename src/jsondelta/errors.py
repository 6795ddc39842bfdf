"""Exceptions raised by pointer parsing, patch validation and patch application.

Every exception derives from :class:`JsonPatchError` and carries an
:class:`ErrorKind`.  Default messages come from :func:`error_message`, a pure
lookup over immutable per-locale tables.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .json_pointer import JsonPointer


class ErrorKind(str, Enum):
    MALFORMED_POINTER = "malformed_pointer"
    INVALID_PATCH = "invalid_patch"
    NO_SUCH_PARENT = "no_such_parent"
    PARENT_NOT_CONTAINER = "parent_not_container"
    NOT_AN_INDEX = "not_an_index"
    NO_SUCH_INDEX = "no_such_index"
    NO_SUCH_PATH = "no_such_path"
    VALUE_MISMATCH = "value_mismatch"
    UNSUPPORTED_VALUE_KIND = "unsupported_value_kind"
    POLICY_VIOLATION = "policy_violation"


_MESSAGES = MappingProxyType(
    {
        "en": MappingProxyType(
            {
                ErrorKind.MALFORMED_POINTER: "malformed JSON Pointer",
                ErrorKind.INVALID_PATCH: "input is not a valid JSON Patch",
                ErrorKind.NO_SUCH_PARENT: "parent of node to add does not exist",
                ErrorKind.PARENT_NOT_CONTAINER: "parent of node to add is not a container",
                ErrorKind.NOT_AN_INDEX: "reference token is not an array index",
                ErrorKind.NO_SUCH_INDEX: "no such index in target array",
                ErrorKind.NO_SUCH_PATH: "no such path in target JSON document",
                ErrorKind.VALUE_MISMATCH: "value differs from expectations",
                ErrorKind.UNSUPPORTED_VALUE_KIND: "value kind cannot be expressed",
                ErrorKind.POLICY_VIOLATION: "patch violates the active policy",
            }
        ),
        "fr": MappingProxyType(
            {
                ErrorKind.MALFORMED_POINTER: "JSON Pointer mal formé",
                ErrorKind.INVALID_PATCH: "l'entrée n'est pas un JSON Patch valide",
                ErrorKind.NO_SUCH_PARENT: "le parent du nœud à ajouter n'existe pas",
                ErrorKind.PARENT_NOT_CONTAINER: "le parent du nœud à ajouter n'est pas un conteneur",
                ErrorKind.NOT_AN_INDEX: "le jeton de référence n'est pas un index de tableau",
                ErrorKind.NO_SUCH_INDEX: "index inexistant dans le tableau cible",
                ErrorKind.NO_SUCH_PATH: "chemin inexistant dans le document JSON cible",
                ErrorKind.VALUE_MISMATCH: "la valeur diffère de celle attendue",
                ErrorKind.UNSUPPORTED_VALUE_KIND: "ce type de valeur ne peut pas être exprimé",
                ErrorKind.POLICY_VIOLATION: "le patch enfreint la politique active",
            }
        ),
    }
)

DEFAULT_LOCALE = "en"


def error_message(kind: ErrorKind, locale: str = DEFAULT_LOCALE) -> str:
    """Return the message template for *kind* in *locale*.

    Locales are matched on their language part (``"fr_CA"`` uses ``"fr"``);
    unknown locales fall back to English.
    """
    language = locale.replace("-", "_").split("_", 1)[0].lower()
    table = _MESSAGES.get(language, _MESSAGES[DEFAULT_LOCALE])
    return table[kind]


def available_locales() -> tuple[str, ...]:
    return tuple(_MESSAGES)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class JsonPatchError(Exception):
    """Base exception for all pointer and patch errors."""

    kind: ErrorKind = ErrorKind.INVALID_PATCH

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or error_message(self.kind))


class _PointerError(JsonPatchError):
    """An error located at a specific pointer of the patched document."""

    def __init__(self, pointer: JsonPointer | None = None, message: str | None = None) -> None:
        self.pointer = pointer
        text = message or error_message(self.kind)
        if pointer is not None:
            text = f"{text}: {str(pointer)!r}"
        super().__init__(text)


class MalformedPointerError(JsonPatchError, ValueError):
    """Raised when a JSON Pointer string cannot be parsed."""

    kind = ErrorKind.MALFORMED_POINTER


class InvalidPatchError(JsonPatchError):
    """Raised when a patch document is structurally invalid.

    ``index`` is the position of the offending operation, or ``None`` when the
    document as a whole is not a list of operations.
    """

    kind = ErrorKind.INVALID_PATCH

    def __init__(self, message: str | None = None, *, index: int | None = None) -> None:
        self.index = index
        text = message or error_message(self.kind)
        if index is not None:
            text = f"{text} (operation #{index})"
        super().__init__(text)


class NoSuchParentError(_PointerError):
    kind = ErrorKind.NO_SUCH_PARENT


class ParentNotContainerError(_PointerError):
    kind = ErrorKind.PARENT_NOT_CONTAINER


class NotAnIndexError(_PointerError):
    kind = ErrorKind.NOT_AN_INDEX


class NoSuchIndexError(_PointerError):
    kind = ErrorKind.NO_SUCH_INDEX


class NoSuchPathError(_PointerError):
    kind = ErrorKind.NO_SUCH_PATH


class ValueMismatchError(_PointerError):
    """Raised by a ``test`` operation whose value does not match."""

    kind = ErrorKind.VALUE_MISMATCH


class UnsupportedValueKindError(JsonPatchError):
    """Raised by update-expression sinks for values they cannot express."""

    kind = ErrorKind.UNSUPPORTED_VALUE_KIND


class PolicyViolationError(JsonPatchError):
    """Raised when a patch violates the active :class:`~jsondelta.patch.PatchPolicy`."""

    kind = ErrorKind.POLICY_VIOLATION


__all__ = [
    "ErrorKind",
    "InvalidPatchError",
    "JsonPatchError",
    "MalformedPointerError",
    "NoSuchIndexError",
    "NoSuchParentError",
    "NoSuchPathError",
    "NotAnIndexError",
    "ParentNotContainerError",
    "PolicyViolationError",
    "UnsupportedValueKindError",
    "ValueMismatchError",
    "available_locales",
    "error_message",
]
