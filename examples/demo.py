"""jsondelta demo: diff two documents, ship the patch, apply it back."""

import json

import jsondelta as jd

# ── 1. Diff: two versions of a document → JSON Patch ─────────────────

before = {
    "title": "Fix the login bug",
    "assignees": ["ada", "grace"],
    "labels": ["bug", "auth", "p1"],
    "meta": {"updated": "2024-05-01", "rev": 7},
}
after = {
    "title": "Fix the login bug",
    "assignees": ["grace", "ada"],
    "labels": ["auth", "p1", "security"],
    "meta": {"updated": "2024-05-02", "rev": 8},
    "reviewers": ["ada", "grace"],
}

patch = jd.diff(before, after)
print("1) diff: moves and copies are detected")
for op in patch:
    print(f"   {op}")
print()


# ── 2. Apply: the patch reproduces the target ────────────────────────
#
# The input document is never mutated.

patched = patch.apply(before)
print("2) apply: round trip")
print(f"   equivalent to target: {jd.json_equivalent(patched, after)}")
print(f"   source untouched:     {'reviewers' not in before}")
print()


# ── 3. Wire format ───────────────────────────────────────────────────

wire = json.dumps(patch.to_json())
restored = jd.JsonPatch.from_json(wire)
print("3) to_json / from_json")
print(f"   {wire[:72]}...")
print(f"   restored == patch: {restored == patch}")
print()


# ── 4. Ignore volatile fields ────────────────────────────────────────

quiet = jd.diff(before, after, jd.DiffOptions(ignore_fields=["/meta/updated", "/meta/rev"]))
print("4) diff with ignore_fields")
for op in quiet:
    print(f"   {op}")
print()


# ── 5. Test operations and numeric equivalence ───────────────────────

guarded = jd.JsonPatch.from_json(
    [
        {"op": "test", "path": "/meta/rev", "value": 7.0},
        {"op": "replace", "path": "/meta/rev", "value": 8},
    ]
)
print("5) test: 7 and 7.0 are the same number")
print(f"   {jd.apply_patch(before, guarded)['meta']}")
print()


# ── 6. Errors carry the failing pointer ──────────────────────────────

try:
    jd.apply_patch(before, [{"op": "remove", "path": "/labels/9"}])
except jd.JsonPatchError as exc:
    print("6) errors")
    print(f"   {type(exc).__name__}: {exc} (kind={exc.kind.value}, pointer={exc.pointer})")
print()


# ── 7. Policies: safety rails for untrusted patches ──────────────────

policy = jd.PatchPolicy(allow_remove=False, max_ops=10)
try:
    jd.apply_patch(before, [{"op": "remove", "path": "/title"}], policy=policy)
except jd.PolicyViolationError as exc:
    print("7) policy")
    print(f"   {exc}")
