from __future__ import annotations

import argparse
import copy
import platform
import statistics
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, NamedTuple

import pydantic

from jsondelta import DiffOptions, JsonPatch, apply_patch, diff
from jsondelta.lcs import longest_common_subsequence


class BenchResult(NamedTuple):
    name: str
    iters: int
    seconds_per_iter: float


def _run_bench(
    name: str,
    fn: Callable[[], object],
    *,
    target_total_seconds: float = 0.25,
    repeats: int = 7,
    max_iters: int = 1_000_000,
) -> BenchResult:
    iters = 1
    while True:
        start = time.perf_counter()
        for _ in range(iters):
            fn()
        elapsed = time.perf_counter() - start
        if elapsed >= target_total_seconds or iters >= max_iters:
            break
        iters *= 2

    per_iter_samples: list[float] = []
    for _ in range(repeats):
        start = time.perf_counter()
        for _ in range(iters):
            fn()
        per_iter_samples.append((time.perf_counter() - start) / iters)

    return BenchResult(name=name, iters=iters, seconds_per_iter=statistics.median(per_iter_samples))


def _fmt_seconds(s: float) -> str:
    if s < 1e-6:
        return f"{s * 1e9:.1f} ns"
    if s < 1e-3:
        return f"{s * 1e6:.1f} µs"
    if s < 1:
        return f"{s * 1e3:.3f} ms"
    return f"{s:.3f} s"


def _print_table(results: list[BenchResult]) -> None:
    name_w = max(len(r.name) for r in results)
    it_w = max(len(str(r.iters)) for r in results)
    print(f"{'scenario'.ljust(name_w)}  {'iters'.rjust(it_w)}  {'median/op'.rjust(12)}")
    print(f"{'-' * name_w}  {'-' * it_w}  {'-' * 12}")
    for r in results:
        print(
            f"{r.name.ljust(name_w)}  {str(r.iters).rjust(it_w)}  {_fmt_seconds(r.seconds_per_iter).rjust(12)}"
        )


@dataclass(frozen=True, slots=True)
class Documents:
    small_before: dict[str, Any]
    small_after: dict[str, Any]
    catalog_before: dict[str, Any]
    catalog_after: dict[str, Any]


def _documents() -> Documents:
    small_before = {"id": 1, "name": "Ada", "tags": ["math", "history"]}
    small_after = {"id": 1, "name": "Ada Lovelace", "tags": ["history", "math", "poetry"]}

    items = [
        {"sku": f"SKU-{i:04d}", "price": i * 1.5, "stock": {"warehouse": i % 7, "store": i % 3}}
        for i in range(200)
    ]
    catalog_before = {"version": 3, "items": items}
    changed = copy.deepcopy(items)
    # rotate a block, drop a few, reprice others
    changed = changed[20:60] + changed[:20] + changed[60:]
    del changed[100:105]
    for item in changed[150:170]:
        item["price"] = round(item["price"] * 1.1, 2)
    changed.append(copy.deepcopy(changed[0]))
    catalog_after = {"version": 4, "items": changed}
    return Documents(small_before, small_after, catalog_before, catalog_after)


def main() -> None:
    parser = argparse.ArgumentParser(description="Microbenchmarks for jsondelta.")
    parser.add_argument("--target-seconds", type=float, default=0.25)
    parser.add_argument("--repeats", type=int, default=7)
    args = parser.parse_args()

    docs = _documents()
    small_patch = diff(docs.small_before, docs.small_after)
    catalog_patch = diff(docs.catalog_before, docs.catalog_after)
    catalog_wire = catalog_patch.to_json()
    unfactorized = DiffOptions(factorize=False)
    numbers_a = list(range(500))
    numbers_b = [n for n in numbers_a if n % 5] + list(range(1000, 1050))

    scenarios: list[tuple[str, Callable[[], object]]] = [
        ("diff small", lambda: diff(docs.small_before, docs.small_after)),
        ("diff catalog (200 items)", lambda: diff(docs.catalog_before, docs.catalog_after)),
        (
            "diff catalog, factorize=False",
            lambda: diff(docs.catalog_before, docs.catalog_after, unfactorized),
        ),
        ("apply small", lambda: small_patch.apply(docs.small_before)),
        ("apply catalog", lambda: catalog_patch.apply(docs.catalog_before)),
        ("JsonPatch.from_json catalog", lambda: JsonPatch.from_json(catalog_wire)),
        ("apply_patch catalog (wire form)", lambda: apply_patch(docs.catalog_before, catalog_wire)),
        ("lcs 500 x 450 ints", lambda: longest_common_subsequence(numbers_a, numbers_b)),
    ]

    results = [
        _run_bench(
            name,
            fn,
            target_total_seconds=args.target_seconds,
            repeats=args.repeats,
        )
        for name, fn in scenarios
    ]

    print("Environment")
    print(f"- python: {platform.python_version()} ({platform.python_implementation()})")
    print(f"- platform: {platform.platform()}")
    print(f"- pydantic: {pydantic.__version__}")
    print(f"- catalog patch: {len(catalog_patch)} operations")
    print()

    _print_table(results)


if __name__ == "__main__":
    main()
