from __future__ import annotations

import re
from collections.abc import Iterable

from .models import RepoDescriptor

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    r"^\.git/",
    r"(^|/)Cargo\.lock$",
    r"\.dat$",
    r"\.log$",
    r"\.pcap$",
    r"\.png$",
    r"^LICENSE$",
)


def normalize_repo_path(path: str) -> str:
    p = path.replace("\\", "/")
    while p.startswith("./"):
        p = p[2:]
    return p


def compile_exclude_patterns(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    compiled: list[re.Pattern[str]] = []
    for pat in patterns:
        if not pat:
            continue
        try:
            compiled.append(re.compile(pat))
        except re.error as e:
            raise ValueError(f"invalid exclude pattern {pat!r}: {e}") from None
    return compiled


def should_exclude_path(path: str, patterns: list[re.Pattern[str]]) -> bool:
    p = normalize_repo_path(path)
    return any(rx.search(p) for rx in patterns)


def exclude_patterns_for(repo: RepoDescriptor, defaults: Iterable[str] = DEFAULT_EXCLUDE_PATTERNS) -> list[str]:
    out = list(defaults)
    for pat in repo.exclude:
        if pat not in out:
            out.append(pat)
    return out
