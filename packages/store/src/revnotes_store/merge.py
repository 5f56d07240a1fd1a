"""Convergent merge rule for note lines.

Every note is a newline-delimited list of JSON records. Two copies of the
same note (one local, one fetched from another clone) are reconciled by
taking the union of their lines, dropping exact duplicates and sorting the
result. The rule is a grow-only set union:

- commutative:  merge(a, b) == merge(b, a)
- associative:  merge(merge(a, b), c) == merge(a, merge(b, c))
- idempotent:   merge(a, a) == merge(a, [])

so clones converge no matter which order they pull from each other in.
It is the same rule git applies with ``git notes merge -s cat_sort_uniq``.

Because every record starts with a fixed-width ``timestamp`` field, the
lexicographic sort also orders records chronologically.
"""

from __future__ import annotations

from collections.abc import Iterable


def split_note(blob: str | None) -> list[str]:
    """Return the non-blank lines of a raw note blob, in stored order."""
    if not blob:
        return []
    return [line for line in blob.splitlines() if line.strip()]


def join_note(lines: Iterable[str]) -> str:
    """Serialize lines back into a note blob (one record per line)."""
    return "".join(f"{line}\n" for line in lines)


def merge_lines(local: Iterable[str], remote: Iterable[str]) -> list[str]:
    """Union two note line sets, collapse exact duplicates and sort.

    Malformed lines are kept verbatim; only byte-identical lines collapse.
    """
    merged = {line for line in local if line.strip()}
    merged.update(line for line in remote if line.strip())
    return sorted(merged)
