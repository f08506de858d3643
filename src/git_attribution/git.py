from __future__ import annotations

import subprocess
from pathlib import Path

from .errors import ExtractionError


def run_git(args: list[str], cwd: Path, timeout_s: int = 300) -> tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def blame_file(repo: Path, rel_path: str) -> str:
    """
    Return `git blame -e --date=iso` output for one file of the working tree at `repo`.

    Non-UTF-8 content is decoded with replacement characters. Raises
    ExtractionError when git is missing, times out or exits non-zero.
    """
    try:
        code, out, err = run_git(["blame", "-e", "--date=iso", "--", rel_path], cwd=repo)
    except FileNotFoundError as e:
        raise ExtractionError(str(repo), f"cannot run git (is it installed and in PATH?): {e}") from None
    except subprocess.TimeoutExpired:
        raise ExtractionError(str(repo), f"git blame timed out for {rel_path}") from None
    if code != 0:
        raise ExtractionError(str(repo), f"git blame exited {code} for {rel_path}: {err.strip()[:500]}")
    return out
