from __future__ import annotations

from collections.abc import Iterable, Mapping

from .models import RepoOutcome


def merge_counts(dst: dict[str, int], src: Mapping[str, int]) -> dict[str, int]:
    for email, n in src.items():
        dst[email] = int(dst.get(email, 0)) + int(n)
    return dst


def merge_all(parts: Iterable[Mapping[str, int]]) -> dict[str, int]:
    out: dict[str, int] = {}
    for part in parts:
        merge_counts(out, part)
    return out


def total_lines(counts: Mapping[str, int]) -> int:
    return sum(int(n) for n in counts.values())


def merge_outcomes(outcomes: Iterable[RepoOutcome]) -> dict[str, int]:
    return merge_all(o.scan.counts for o in outcomes if o.scan is not None)


def top_contributors(counts: Mapping[str, int], n: int = 0) -> list[tuple[str, int]]:
    items = sorted(counts.items(), key=lambda kv: (-int(kv[1]), kv[0]))
    return items[:n] if n > 0 else items
