from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from typing import Any

from .equivalence import json_equivalent

__all__ = ["lcs_indices", "lcs_length_grid", "longest_common_subsequence"]


def _common_prefix(A, B, compare) -> int:
    n = 0
    for a, b in zip(A, B):
        if not compare(a, b):
            break
        n += 1
    return n


def _common_suffix(A, B, offset, compare) -> int:
    "Count equal trailing items, never reaching back into the common prefix."
    trim = 0
    i, j = len(A) - 1, len(B) - 1
    while i > offset and j > offset:
        if not compare(A[i], B[j]):
            break
        trim += 1
        i -= 1
        j -= 1
    return trim


def lcs_length_grid(A, B, compare=json_equivalent) -> list[list[int]]:
    "Compute grid R[x][y] == llcs(A[:x], B[:y])."
    N, M = len(A), len(B)
    R = [[0] * (M + 1) for _ in range(N + 1)]
    for x in range(1, N + 1):
        a = A[x - 1]
        row, prev = R[x], R[x - 1]
        for y in range(1, M + 1):
            if compare(a, B[y - 1]):
                row[y] = prev[y - 1] + 1
            else:
                row[y] = max(prev[y], row[y - 1])
    return R


def _dump(seq) -> str:
    return json.dumps(list(seq), sort_keys=True, default=repr)


def _in_canonical_order(A, B) -> bool:
    "Return True if A sorts before (or equal to) B in a call-order independent way."
    if len(A) != len(B):
        return len(A) < len(B)
    return _dump(A) <= _dump(B)


def lcs_indices(
    A: Sequence[Any],
    B: Sequence[Any],
    compare: Callable[[Any, Any], bool] = json_equivalent,
) -> tuple[list[int], list[int]]:
    """Compute the lcs of A and B as index lists.

    Returns two lists (A_indices, B_indices) with length == llcs(A, B),
    such that lcs(A, B) == A[A_indices] == B[B_indices].

    A common prefix and suffix are matched directly; the dynamic programming
    table only covers the middle.  When backtracking, ties drop an item of
    the first argument, after ordering the two arguments canonically so that
    lcs_indices(B, A) selects the same matches as lcs_indices(A, B).
    """
    if not _in_canonical_order(A, B):
        B_indices, A_indices = _lcs_indices(B, A, compare)
        return A_indices, B_indices
    return _lcs_indices(A, B, compare)


def _lcs_indices(A, B, compare):
    N, M = len(A), len(B)
    offset = _common_prefix(A, B, compare)
    trim = _common_suffix(A, B, offset, compare)

    A_indices = list(range(offset))
    B_indices = list(range(offset))

    if offset < min(N, M):
        A_mid = A[offset:N - trim]
        B_mid = B[offset:M - trim]
        R = lcs_length_grid(A_mid, B_mid, compare)
        mid_a: list[int] = []
        mid_b: list[int] = []
        x, y = len(A_mid), len(B_mid)
        while x > 0 and y > 0:
            if R[x][y] == R[x - 1][y]:
                x -= 1
            elif R[x][y] == R[x][y - 1]:
                y -= 1
            else:
                x -= 1
                y -= 1
                mid_a.append(x + offset)
                mid_b.append(y + offset)
        mid_a.reverse()
        mid_b.reverse()
        A_indices.extend(mid_a)
        B_indices.extend(mid_b)

    A_indices.extend(range(N - trim, N))
    B_indices.extend(range(M - trim, M))
    return A_indices, B_indices


def longest_common_subsequence(
    first: Sequence[Any],
    second: Sequence[Any],
    compare: Callable[[Any, Any], bool] = json_equivalent,
) -> list[Any]:
    """Return the longest common subsequence of two arrays.

    Items are compared with JSON value equivalence and taken from *first*.
    For example::

        first:  [1, 2, 3, 4, 5, 6, 7, 8, 9]
        second: [1, 2, 10, 11, 5, 12, 8, 9]
        lcs:    [1, 2, 5, 8, 9]
    """
    A_indices, _ = lcs_indices(first, second, compare)
    return [first[i] for i in A_indices]
