from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path

import pytest

from git_attribution.cli import main


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def _init_repo(repo: Path) -> None:
    repo.mkdir(parents=True, exist_ok=True)
    _run(["git", "init"], cwd=repo)
    _run(["git", "config", "user.name", "Test User"], cwd=repo)
    _run(["git", "config", "user.email", "test@example.com"], cwd=repo)
    (repo / "main.py").write_text("print(1)\nprint(2)\n", encoding="utf-8")
    (repo / "LICENSE").write_text("MIT\n", encoding="utf-8")
    _run(["git", "add", "main.py", "LICENSE"], cwd=repo)
    env = os.environ.copy()
    env["GIT_AUTHOR_NAME"] = "Alice"
    env["GIT_AUTHOR_EMAIL"] = "alice@example.com"
    env["GIT_AUTHOR_DATE"] = "2024-01-02T10:00:00Z"
    env["GIT_COMMITTER_DATE"] = "2024-01-02T10:00:00Z"
    _run(["git", "commit", "-m", "init"], cwd=repo, env=env)


def test_help_describes_tool(capsys) -> None:
    with pytest.raises(SystemExit) as ei:
        main(["--help"])
    assert ei.value.code == 0
    out = capsys.readouterr().out
    assert "--asof" in out
    assert "--epoch" in out


def test_cli_writes_stats_and_reports_missing_repo(tmp_path: Path) -> None:
    _init_repo(tmp_path / "repos" / "core")
    config = tmp_path / "config.json"
    config.write_text(
        json.dumps(
            {
                "repos_root": "repos",
                "repos": {"core": {"url": "https://example.com/core.git"}, "missing": {}},
                "email_map": {"alice@example.com": "alice"},
            }
        ),
        encoding="utf-8",
    )
    out = tmp_path / "out" / "stats.json"

    code = main(["--config", str(config), "--asof", "2024-01-04T00:00:00Z", "--epoch", "2024-01-01T00:00:00Z", "--out", str(out)])

    assert code == 1
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["since"].startswith("2024-01-01T00:00:00")
    assert data["people"]["alice"]["lines_contributed"] == 2
    assert data["unmapped_emails"] == []
    assert {r["name"]: r["ok"] for r in data["repos"]} == {"core": True, "missing": False}


def test_cli_rejects_bad_timestamp(tmp_path: Path, capsys) -> None:
    assert main(["--config", str(tmp_path / "none.json"), "--asof", "soon"]) == 2
    assert "Invalid timestamp" in capsys.readouterr().err
