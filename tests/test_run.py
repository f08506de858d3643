from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

from git_attribution.attribution_periods import Window
from git_attribution.attribution_run import run, scan_repos
from git_attribution.config import Settings
from git_attribution.models import RepoDescriptor

UTC = dt.timezone.utc
WINDOW = Window(since=dt.datetime(2024, 1, 1, tzinfo=UTC), asof=dt.datetime(2024, 1, 4, tzinfo=UTC))

BLAME = {
    ("one", "main.py"): "(<alice@example.com> 2024-01-02 10:00:00 +0000 1) a\n(<bob@example.com> 2024-01-02 10:00:00 +0000 2) b\n",
    ("one", "vendor/lib.py"): "(<vendor@example.com> 2024-01-02 10:00:00 +0000 1) v\n",
    ("three", "app.py"): "(<alice@example.com> 2024-01-03 10:00:00 +0000 1) c\n(<ghost@example.com> 2024-01-03 10:00:00 +0000 2) d\n",
}


def fake_blame(repo: Path, rel: str) -> str:
    return BLAME[(repo.name, rel)]


def _make_repos(root: Path) -> list[RepoDescriptor]:
    for repo, rel in BLAME:
        p = root / repo / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("x\n", encoding="utf-8")
    # "two" is configured but was never synchronized
    return [
        RepoDescriptor(name="one", exclude=(r"^vendor/",)),
        RepoDescriptor(name="two"),
        RepoDescriptor(name="three"),
    ]


def test_scan_repos_tolerates_failed_repo(tmp_path: Path, capsys) -> None:
    repos = _make_repos(tmp_path)
    outcomes = scan_repos(tmp_path, repos, WINDOW, blame=fake_blame)

    assert [o.name for o in outcomes] == ["one", "two", "three"]
    assert [o.ok for o in outcomes] == [True, False, True]
    assert outcomes[0].scan is not None
    assert outcomes[0].scan.counts == {"alice@example.com": 1, "bob@example.com": 1}
    assert outcomes[0].scan.files_excluded == 1
    assert "two" in outcomes[1].error
    assert "scan failed" in capsys.readouterr().err


def test_scan_repos_parallel_matches_sequential(tmp_path: Path) -> None:
    repos = _make_repos(tmp_path)
    seq = scan_repos(tmp_path, repos, WINDOW, blame=fake_blame)
    par = scan_repos(tmp_path, repos, WINDOW, blame=fake_blame, jobs=3)
    assert [o.name for o in par] == [o.name for o in seq]
    assert [o.scan.counts if o.scan else None for o in par] == [o.scan.counts if o.scan else None for o in seq]


def test_run_merges_lines_and_tracker_activity(tmp_path: Path) -> None:
    repos = _make_repos(tmp_path)
    export = tmp_path / "gitlab.json"
    export.write_text(
        json.dumps(
            {
                "issues": [
                    {"author": "alice-gl", "labels": ["bug"], "created_at": "2024-01-02T00:00:00Z"},
                    {
                        "author": "carol",
                        "assignees": ["alice-gl", "bob"],
                        "created_at": "2024-01-01T00:00:00Z",
                        "closed_at": "2024-01-03T00:00:00Z",
                    },
                ],
                "merge_requests": [
                    {"author": "bob", "created_at": "2024-01-02T00:00:00Z", "user_notes_count": 5},
                    {
                        "project": "core",
                        "iid": 9,
                        "title": "Add walker",
                        "author": "carol",
                        "assignee": "bob",
                        "state": "opened",
                        "created_at": "2024-01-02T00:00:00Z",
                    },
                ],
            }
        ),
        encoding="utf-8",
    )
    settings = Settings(
        repos_root=tmp_path,
        repos=repos,
        exclude_patterns=[r"^\.git/"],
        email_map={"alice@example.com": "alice", "bob@example.com": "bob"},
        login_map={"alice-gl": "alice", "bob": "bob"},
        people=["alice", "bob"],
        tracker_exports=[export],
    )

    result = run(settings, WINDOW, blame=fake_blame)

    people = result["people"]
    assert set(people) == {"alice", "bob"}
    assert people["alice"]["lines_contributed"] == 2
    assert people["alice"]["bugs_reported"] == 1
    assert people["alice"]["issues_completed"] == 0.5
    assert people["bob"]["merged_requests_opened"] == 1
    assert people["bob"]["rates"]["comments_per_merged_request"] == 5.0
    assert result["unmapped_emails"] == [{"email": "ghost@example.com", "lines": 1}]
    assert [u["login"] for u in result["unmapped_logins"]] == ["carol"]
    assert result["lines_total"] == 4
    assert result["lines_unlisted"] == 0
    assert result["under_review"] == [{"project": "core", "iid": 9, "title": "Add walker", "assignees": ["bob"]}]
    assert [r["ok"] for r in result["repos"]] == [True, False, True]
    json.dumps(result)


def test_run_reports_lines_of_unlisted_people(tmp_path: Path) -> None:
    repos = _make_repos(tmp_path)
    settings = Settings(
        repos_root=tmp_path,
        repos=repos,
        exclude_patterns=[],
        email_map={"alice@example.com": "alice", "bob@example.com": "bob"},
        login_map=None,
        people=["alice"],
        tracker_exports=[],
    )

    result = run(settings, WINDOW, blame=fake_blame)

    assert list(result["people"]) == ["alice"]
    assert result["lines_unlisted"] == 1
    listed = sum(p["lines_contributed"] for p in result["people"].values())
    unmapped = sum(u["lines"] for u in result["unmapped_emails"])
    assert listed + result["lines_unlisted"] + unmapped == result["lines_total"]
