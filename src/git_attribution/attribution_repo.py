from __future__ import annotations

import datetime as dt
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .attribution_aggregate import merge_counts
from .attribution_blame import count_blame_lines
from .attribution_periods import Window
from .attribution_walk import RepoFiles
from .errors import ExtractionError, ScanError
from .git import blame_file
from .models import ParseWarning, RepoScan

BlameFn = Callable[[Path, str], str]


def _blame_and_count(blame: BlameFn, root: Path, rel: str, window: Window) -> tuple[dict[str, int], list[ParseWarning]]:
    try:
        text = blame(root, rel)
    except ScanError:
        raise
    except Exception as e:
        raise ExtractionError(str(root), f"blame failed for {rel}: {e}") from e
    counts: dict[str, int] = {}
    warnings = count_blame_lines(text, window, counts, path=rel)
    return counts, warnings


def scan(
    root: Path,
    since: dt.datetime,
    asof: dt.datetime,
    exclude_patterns: Iterable[str],
    *,
    blame: BlameFn = blame_file,
    jobs: int = 1,
    name: str = "",
) -> RepoScan:
    """
    Count the lines of every non-excluded file under `root` whose blame
    timestamp falls in `[since, asof)`, keyed by author email.

    Raises TraversalError or ExtractionError (both ScanError) when the
    repository cannot be enumerated or a file cannot be blamed; malformed
    blame lines only produce warnings on the result.
    """
    root = Path(root)
    window = Window(since=since, asof=asof)
    files = RepoFiles(root, exclude_patterns)
    result = RepoScan(name=name or root.name, path=str(root))

    if jobs <= 1:
        for rel in files:
            counts, warnings = _blame_and_count(blame, root, rel, window)
            merge_counts(result.counts, counts)
            result.warnings.extend(warnings)
            result.files_scanned += 1
    else:
        rels = list(files)
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            parts = ex.map(lambda rel: _blame_and_count(blame, root, rel, window), rels)
            for counts, warnings in parts:
                merge_counts(result.counts, counts)
                result.warnings.extend(warnings)
                result.files_scanned += 1
    result.files_excluded = files.excluded
    return result
