from __future__ import annotations

import sys
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from .attribution_aggregate import merge_outcomes, total_lines
from .attribution_paths import DEFAULT_EXCLUDE_PATTERNS, exclude_patterns_for
from .attribution_periods import Window
from .attribution_repo import BlameFn, scan
from .config import Settings
from .errors import ScanError
from .git import blame_file
from .models import RepoDescriptor, RepoOutcome
from .reconcile import build_individual_stats, daily_rates, select_people
from .tracker import activity_counters, load_tracker_export, recent_changes, stale_issues, under_review

MAX_WARNINGS_SHOWN = 5


def scan_one(
    repos_root: Path,
    repo: RepoDescriptor,
    window: Window,
    *,
    default_excludes: Iterable[str] = DEFAULT_EXCLUDE_PATTERNS,
    blame: BlameFn = blame_file,
) -> RepoOutcome:
    path = repos_root / repo.name
    try:
        result = scan(
            path,
            window.since,
            window.asof,
            exclude_patterns_for(repo, default_excludes),
            blame=blame,
            name=repo.name,
        )
    except ScanError as e:
        return RepoOutcome(name=repo.name, path=str(path), error=str(e))
    return RepoOutcome(name=repo.name, path=str(path), scan=result)


def _report_outcome(o: RepoOutcome) -> None:
    if o.scan is None:
        print(f"  ! {o.name}: scan failed: {o.error}", file=sys.stderr)
        return
    s = o.scan
    print(f"  -> {o.name}: {s.lines_total} lines in window from {s.files_scanned} files ({s.files_excluded} excluded)")
    if s.warnings:
        print(f"  ! {o.name}: skipped {len(s.warnings)} malformed blame lines", file=sys.stderr)
        for w in s.warnings[:MAX_WARNINGS_SHOWN]:
            print(f"      {w}", file=sys.stderr)


def scan_repos(
    repos_root: Path,
    repos: list[RepoDescriptor],
    window: Window,
    *,
    default_excludes: Iterable[str] = DEFAULT_EXCLUDE_PATTERNS,
    blame: BlameFn = blame_file,
    jobs: int = 1,
) -> list[RepoOutcome]:
    """
    Scan every repository under `repos_root`. A repository that cannot be
    scanned is reported in its outcome and does not stop the others.
    Outcomes come back in the order of `repos`.
    """
    defaults = list(default_excludes)
    by_name: dict[str, RepoOutcome] = {}
    if jobs <= 1 or len(repos) <= 1:
        for i, repo in enumerate(repos, start=1):
            print(f"Scanning {repo.name} ({i}/{len(repos)})")
            sys.stdout.flush()
            o = scan_one(repos_root, repo, window, default_excludes=defaults, blame=blame)
            _report_outcome(o)
            by_name[repo.name] = o
    else:
        print(f"Scanning {len(repos)} repos (jobs={jobs})...")
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            futs = {ex.submit(scan_one, repos_root, repo, window, default_excludes=defaults, blame=blame): repo for repo in repos}
            for fut in as_completed(futs):
                o = fut.result()
                _report_outcome(o)
                by_name[futs[fut].name] = o
    return [by_name[r.name] for r in repos]


def run(settings: Settings, window: Window, *, blame: BlameFn = blame_file, jobs: int = 1) -> dict[str, object]:
    """Scan all configured repositories and merge the result with tracker exports."""
    outcomes = scan_repos(
        settings.repos_root,
        settings.repos,
        window,
        default_excludes=settings.exclude_patterns,
        blame=blame,
        jobs=jobs,
    )
    line_counts = merge_outcomes(outcomes)

    counters = []
    all_issues = []
    all_requests = []
    for path in settings.tracker_exports:
        issues, merge_requests = load_tracker_export(path)
        all_issues.extend(issues)
        all_requests.extend(merge_requests)
        counters.append(activity_counters(issues, merge_requests, window))

    rec = build_individual_stats(line_counts, settings.email_map, counters, settings.login_map)
    people = select_people(rec.people, settings.people)
    # lines of mapped people left out by the configured people list
    lines_unlisted = rec.lines_mapped - sum(st.lines_contributed for st in people.values())

    return {
        "since": window.since.isoformat(),
        "asof": window.asof.isoformat(),
        "repos": [
            {
                "name": o.name,
                "path": o.path,
                "ok": o.ok,
                "error": o.error,
                "lines": o.scan.lines_total if o.scan else 0,
                "files_scanned": o.scan.files_scanned if o.scan else 0,
                "files_excluded": o.scan.files_excluded if o.scan else 0,
                "warnings": [str(w) for w in o.scan.warnings] if o.scan else [],
            }
            for o in outcomes
        ],
        "lines_total": total_lines(line_counts),
        "lines_unlisted": lines_unlisted,
        "people": {
            name: {**st.to_dict(), "rates": daily_rates(st, window)}
            for name, st in people.items()
        },
        "unmapped_emails": [{"email": e, "lines": n} for e, n in rec.unmapped_emails],
        "unmapped_logins": [{"login": login, **vars(c)} for login, c in rec.unmapped_logins],
        "under_review": [
            {"project": mr.project, "iid": mr.iid, "title": mr.title, "assignees": list(mr.assignees)}
            for mr in under_review(all_requests, window.asof)
        ],
        "recent_changes": recent_changes(all_issues, window.asof),
        "stale_issues": [
            {"project": i.project, "iid": i.iid, "title": i.title, "assignees": list(i.assignees)}
            for i in stale_issues(all_issues, window.asof)
        ],
    }
