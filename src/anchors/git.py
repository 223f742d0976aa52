"""Git access for anchors: config overlay and tracked-file enumeration."""

import asyncio
from pathlib import Path
from typing import Any

from git import InvalidGitRepositoryError, NoSuchPathError, Repo

ANCHORS_DEFAULTS = {
    "max-files": 250,
    "parse-delay": 500,
    "lazy-load": False,
    "workspace-enabled": True,
    "match-case": False,
    "end-tag": "!",
}


def _python_key(git_key: str) -> str:
    """Convert git-style key (hyphenated) to Python-style (underscored)."""
    return git_key.replace("-", "_")


def _coerce_value(git_key: str, raw: str):
    """Type-coerce anchors section values using defaults."""
    default = ANCHORS_DEFAULTS.get(git_key)
    if default is None:
        return raw
    if isinstance(default, bool):
        return raw.lower() in ("true", "yes", "1")
    if isinstance(default, int):
        return int(raw)
    return raw


def _get_repo(repo_path: str | Path) -> Repo:
    return Repo(repo_path, search_parent_directories=True)


def is_git_repo(path: str | Path) -> bool:
    """Check if path is inside a git repository."""
    try:
        _get_repo(path)
        return True
    except (InvalidGitRepositoryError, NoSuchPathError):
        return False


def read_anchors_config(repo_path: str | Path) -> dict[str, Any]:
    """Read the ``[anchors]`` git config section as a python-keyed dict.

    Only keys actually present are returned; values whose type does not
    coerce are skipped. Returns {} outside a repository.
    """
    if not is_git_repo(repo_path):
        return {}
    reader = _get_repo(repo_path).config_reader()
    if not reader.has_section("anchors"):
        return {}
    result: dict[str, Any] = {}
    for git_k, raw in reader.items("anchors"):
        try:
            result[_python_key(git_k)] = _coerce_value(git_k, str(raw))
        except ValueError:
            continue
    return result


def list_files_sync(repo_path: str | Path) -> list[Path]:
    """Tracked and untracked-but-not-ignored files under repo_path.

    Paths are absolute. Only files below repo_path are returned even when the
    repository root is higher up.
    """
    root = Path(repo_path).resolve()
    repo = _get_repo(root)
    # -z keeps non-ASCII names unquoted
    output = repo.git.ls_files("-z", "--cached", "--others", "--exclude-standard", "--full-name")
    top = Path(repo.working_tree_dir).resolve()
    files = []
    for name in output.split("\0"):
        if not name:
            continue
        path = top / name
        if path.is_relative_to(root) and path.is_file():
            files.append(path)
    return files


async def list_files(repo_path: str | Path) -> list[Path]:
    """Async wrapper around list_files_sync."""
    return await asyncio.to_thread(list_files_sync, repo_path)
