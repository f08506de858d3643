from __future__ import annotations

import dataclasses
import json
from pathlib import Path

from .attribution_paths import DEFAULT_EXCLUDE_PATTERNS, compile_exclude_patterns
from .models import RepoDescriptor


@dataclasses.dataclass(frozen=True)
class Settings:
    repos_root: Path
    repos: list[RepoDescriptor]
    exclude_patterns: list[str]
    email_map: dict[str, str]
    login_map: dict[str, str] | None
    people: list[str]
    tracker_exports: list[Path]


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    return json.loads(config_path.read_text(encoding="utf-8"))


def _str_map(value: object, key: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"config: {key!r} must be an object")
    return {str(k): str(v) for k, v in value.items() if str(k).strip() and str(v).strip()}


def repos_from_config(value: object) -> list[RepoDescriptor]:
    """
    Accepts either a mapping of name -> {"url": ..., "exclude": [...]} or a
    list of names. Names are directories under `repos_root`.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return [RepoDescriptor(name=str(n)) for n in value if str(n).strip()]
    if not isinstance(value, dict):
        raise ValueError("config: 'repos' must be an object or a list")
    repos: list[RepoDescriptor] = []
    for name, entry in sorted(value.items()):
        entry = entry if isinstance(entry, dict) else {}
        exclude = tuple(str(p) for p in (entry.get("exclude") or []) if str(p))
        compile_exclude_patterns(exclude)
        repos.append(RepoDescriptor(name=str(name), url=str(entry.get("url", "") or ""), exclude=exclude))
    return repos


def settings_from_config(config: dict, *, base_dir: Path) -> Settings:
    def resolve(p: str) -> Path:
        path = Path(p).expanduser()
        return path if path.is_absolute() else (base_dir / path)

    exclude = config.get("exclude_patterns")
    exclude_patterns = list(DEFAULT_EXCLUDE_PATTERNS) if exclude is None else [str(p) for p in exclude if str(p)]
    compile_exclude_patterns(exclude_patterns)

    login_map = _str_map(config.get("login_map"), "login_map") if "login_map" in config else None
    return Settings(
        repos_root=resolve(str(config.get("repos_root", "") or "repos")),
        repos=repos_from_config(config.get("repos")),
        exclude_patterns=exclude_patterns,
        email_map=_str_map(config.get("email_map"), "email_map"),
        login_map=login_map,
        people=[str(p) for p in (config.get("people") or []) if str(p).strip()],
        tracker_exports=[resolve(str(p)) for p in (config.get("tracker_exports") or []) if str(p).strip()],
    )
