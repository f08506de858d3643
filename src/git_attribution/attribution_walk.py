from __future__ import annotations

import os
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from .attribution_paths import compile_exclude_patterns, normalize_repo_path, should_exclude_path
from .errors import TraversalError


class RepoFiles:
    """
    Repository-relative paths of the regular files under `root`, in a
    deterministic order.

    Iterating is lazy and may be repeated; each iteration walks the tree
    again. Directories, `.git` and symbolic links are skipped and links are never
    followed. Paths use forward slashes and are matched against the
    exclusion patterns before they are yielded. `excluded` counts the paths
    dropped by the most recent iteration.
    """

    def __init__(self, root: Path, exclude_patterns: Iterable[str] = ()) -> None:
        self.root = Path(root)
        self.patterns: list[re.Pattern[str]] = compile_exclude_patterns(exclude_patterns)
        self.excluded = 0

    def __iter__(self) -> Iterator[str]:
        self.excluded = 0
        root = str(self.root)

        def onerror(err: OSError) -> None:
            raise TraversalError(root, f"cannot traverse repo: {err}") from err

        if not self.root.is_dir():
            raise TraversalError(root, "not a directory")

        for dirpath, dirnames, filenames in os.walk(root, onerror=onerror, followlinks=False):
            # git internals are never part of the working tree
            dirnames[:] = sorted(d for d in dirnames if d != ".git")
            rel_dir = os.path.relpath(dirpath, root)
            for name in sorted(filenames):
                full = os.path.join(dirpath, name)
                if name == ".git" or os.path.islink(full):
                    continue
                rel = name if rel_dir == os.curdir else os.path.join(rel_dir, name)
                rel = normalize_repo_path(rel)
                if should_exclude_path(rel, self.patterns):
                    self.excluded += 1
                    continue
                yield rel
