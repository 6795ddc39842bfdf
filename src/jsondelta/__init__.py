from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("jsondelta")
except PackageNotFoundError:  # pragma: no cover - local source tree without installed metadata
    __version__ = "0.1.0"

from .diff import DiffOptions, diff
from .equivalence import json_equivalent, json_kind
from .errors import (
    ErrorKind,
    InvalidPatchError,
    JsonPatchError,
    MalformedPointerError,
    NoSuchIndexError,
    NoSuchParentError,
    NoSuchPathError,
    NotAnIndexError,
    ParentNotContainerError,
    PolicyViolationError,
    UnsupportedValueKindError,
    ValueMismatchError,
    error_message,
)
from .json_pointer import MISSING, JsonPointer
from .lcs import longest_common_subsequence
from .operations import (
    AddOperation,
    CopyOperation,
    MoveOperation,
    PatchOperation,
    RemoveOperation,
    ReplaceOperation,
    TestOperation,
)
from .patch import JsonPatch, PatchPolicy, apply_patch

__all__ = [
    "AddOperation",
    "CopyOperation",
    "DiffOptions",
    "ErrorKind",
    "InvalidPatchError",
    "JsonPatch",
    "JsonPatchError",
    "JsonPointer",
    "MISSING",
    "MalformedPointerError",
    "MoveOperation",
    "NoSuchIndexError",
    "NoSuchParentError",
    "NoSuchPathError",
    "NotAnIndexError",
    "ParentNotContainerError",
    "PatchOperation",
    "PatchPolicy",
    "PolicyViolationError",
    "RemoveOperation",
    "ReplaceOperation",
    "TestOperation",
    "UnsupportedValueKindError",
    "ValueMismatchError",
    "apply_patch",
    "diff",
    "error_message",
    "json_equivalent",
    "json_kind",
    "longest_common_subsequence",
]
