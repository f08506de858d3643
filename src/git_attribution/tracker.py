from __future__ import annotations

import dataclasses
import datetime as dt
import json
from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path

from .attribution_periods import Window, as_aware, parse_instant
from .models import TrackerCounters

RECENT_DAYS = 7
STALE_AFTER = dt.timedelta(days=1)
DRAFT_PREFIXES = ("draft:", "wip:", "[draft]", "[wip]", "(draft)")


@dataclasses.dataclass(frozen=True)
class Issue:
    project: str
    iid: int
    title: str
    author: str
    created_at: dt.datetime
    updated_at: dt.datetime
    closed_at: dt.datetime | None = None
    assignees: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    due_date: dt.date | None = None
    milestone_due_date: dt.date | None = None

    @property
    def is_bug(self) -> bool:
        return "bug" in self.labels


@dataclasses.dataclass(frozen=True)
class MergeRequest:
    project: str
    iid: int
    title: str
    author: str
    created_at: dt.datetime
    merged: bool = True
    is_open: bool = False
    draft: bool = False
    assignees: tuple[str, ...] = ()
    user_notes_count: int = 0


def activity_counters(
    issues: Iterable[Issue],
    merge_requests: Iterable[MergeRequest],
    window: Window,
    *,
    recent_days: int = RECENT_DAYS,
) -> dict[str, TrackerCounters]:
    """
    Per-login issue and merge request activity within `window`.

    Issues opened in the window count for their author, as a bug when labelled
    `bug`. Each issue closed in the window is split evenly between its
    assignees, so one issue with three assignees credits each with 1/3.
    Openings and closings during the last `recent_days` before `asof` also
    count as recent. Merged requests created in the window count for their
    author together with their comment count.
    """
    recent = Window(since=max(window.since, window.asof - dt.timedelta(days=recent_days)), asof=window.asof)
    out: dict[str, TrackerCounters] = defaultdict(TrackerCounters)

    for issue in issues:
        if window.contains(issue.created_at):
            author = out[issue.author]
            if issue.is_bug:
                author.bugs_reported += 1
            else:
                author.issues_opened += 1
            if recent.contains(issue.created_at):
                author.recently_opened += 1
        if issue.closed_at is not None and issue.assignees and window.contains(issue.closed_at):
            share = 1.0 / len(issue.assignees)
            for login in issue.assignees:
                assignee = out[login]
                assignee.issues_completed += share
                if recent.contains(issue.closed_at):
                    assignee.recently_closed += 1

    for mr in merge_requests:
        if not mr.merged or not window.contains(mr.created_at):
            continue
        author = out[mr.author]
        author.merged_requests_opened += 1
        author.request_comment_count += int(mr.user_notes_count)

    return dict(out)


def merge_tracker_counters(sources: Iterable[dict[str, TrackerCounters]]) -> dict[str, TrackerCounters]:
    out: dict[str, TrackerCounters] = {}
    for src in sources:
        for login, c in src.items():
            cur = out.get(login)
            if cur is None:
                cur = TrackerCounters()
                out[login] = cur
            cur.add(c)
    return out


def recent_changes(issues: Iterable[Issue], asof: dt.datetime, *, days: int = RECENT_DAYS) -> dict[str, object]:
    """Issues created per author and completed per assignee during the last `days` days."""
    asof = as_aware(asof)
    recent = Window(since=asof - dt.timedelta(days=days), asof=asof)
    created: dict[str, int] = defaultdict(int)
    completed: dict[str, int] = defaultdict(int)
    completed_total = 0
    for issue in issues:
        if as_aware(issue.updated_at) < recent.since:
            continue
        if recent.contains(issue.created_at):
            created[issue.author] += 1
        if issue.closed_at is not None and recent.contains(issue.closed_at) and issue.assignees:
            completed_total += 1
            for login in issue.assignees:
                completed[login] += 1

    def ranked(counts: dict[str, int]) -> list[tuple[str, int]]:
        return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))

    return {
        "created_total": sum(created.values()),
        "created_by": ranked(created),
        "completed_total": completed_total,
        "completed_by": ranked(completed),
    }


def under_review(merge_requests: Iterable[MergeRequest], asof: dt.datetime) -> list[MergeRequest]:
    """Open, non-draft merge requests created before `asof`, by project and number."""
    asof = as_aware(asof)
    out = [mr for mr in merge_requests if mr.is_open and not mr.draft and as_aware(mr.created_at) < asof]
    out.sort(key=lambda mr: (mr.project, mr.iid))
    return out


def issue_due_date(issue: Issue) -> dt.date | None:
    if issue.due_date is not None:
        return issue.due_date
    return issue.milestone_due_date


def _open_at(issue: Issue, asof: dt.datetime) -> bool:
    if as_aware(issue.created_at) >= asof:
        return False
    return issue.closed_at is None or as_aware(issue.closed_at) >= asof


def stale_issues(issues: Iterable[Issue], asof: dt.datetime) -> list[Issue]:
    """
    Open, assigned issues not updated during the day before `asof` and not
    labelled `blocked`, soonest due first; issues without a due date come last.
    """
    asof = as_aware(asof)
    cutoff = asof - STALE_AFTER
    out = [
        i
        for i in issues
        if _open_at(i, asof) and i.assignees and "blocked" not in i.labels and as_aware(i.updated_at) <= cutoff
    ]

    def sort_key(i: Issue) -> tuple[int, dt.date, dt.datetime]:
        due = issue_due_date(i)
        return (0 if due is not None else 1, due or dt.date.max, as_aware(i.updated_at))

    out.sort(key=sort_key)
    return out


def _opt_instant(value: object) -> dt.datetime | None:
    s = str(value or "").strip()
    return parse_instant(s) if s else None


def _issue_from_dict(d: dict) -> Issue:
    assignees = d.get("assignees")
    if assignees is None and d.get("assignee"):
        assignees = [d.get("assignee")]
    due = str(d.get("due_date") or "").strip()
    milestone_due = str(d.get("milestone_due_date") or "").strip()
    return Issue(
        project=str(d.get("project", "") or ""),
        iid=int(d.get("iid", 0) or 0),
        title=str(d.get("title", "") or ""),
        author=str(d.get("author", "") or ""),
        created_at=parse_instant(str(d.get("created_at", ""))),
        updated_at=parse_instant(str(d.get("updated_at") or d.get("created_at", ""))),
        closed_at=_opt_instant(d.get("closed_at")),
        assignees=tuple(str(a) for a in (assignees or []) if str(a).strip()),
        labels=tuple(str(x) for x in (d.get("labels") or [])),
        due_date=dt.date.fromisoformat(due) if due else None,
        milestone_due_date=dt.date.fromisoformat(milestone_due) if milestone_due else None,
    )


def _merge_request_from_dict(d: dict) -> MergeRequest:
    state = str(d.get("state", "merged") or "merged").strip().lower()
    title = str(d.get("title", "") or "")
    assignees = d.get("assignees")
    if assignees is None and d.get("assignee"):
        assignees = [d.get("assignee")]
    draft = bool(d.get("draft") or d.get("work_in_progress") or d.get("wip"))
    draft = draft or title.lower().startswith(DRAFT_PREFIXES)
    return MergeRequest(
        project=str(d.get("project", "") or ""),
        iid=int(d.get("iid", 0) or 0),
        title=title,
        author=str(d.get("author", "") or ""),
        created_at=parse_instant(str(d.get("created_at", ""))),
        merged=state == "merged",
        is_open=state in ("opened", "open"),
        draft=draft,
        assignees=tuple(str(a) for a in (assignees or []) if str(a).strip()),
        user_notes_count=int(d.get("user_notes_count", 0) or 0),
    )


def load_tracker_export(path: Path) -> tuple[list[Issue], list[MergeRequest]]:
    """
    Read issues and merge requests exported by a tracker client:

      {"issues": [{"author": "alice", "created_at": "...", ...}],
       "merge_requests": [{"author": "bob", "created_at": "...", "state": "merged"}]}

    GitHub pull requests may be listed under "pull_requests" instead.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: tracker export must be a JSON object")
    issues = [_issue_from_dict(d) for d in (data.get("issues") or []) if isinstance(d, dict)]
    raw_mrs = list(data.get("merge_requests") or []) + list(data.get("pull_requests") or [])
    mrs = [_merge_request_from_dict(d) for d in raw_mrs if isinstance(d, dict)]
    return issues, mrs
