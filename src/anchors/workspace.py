"""Workspace scanning: enumerate candidate files and parse them in paced batches."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from anchors.constants import SCAN_BATCH_SIZE, SCAN_PAUSE
from anchors.git import is_git_repo, list_files

if TYPE_CHECKING:
    from anchors.engine import AnchorEngine

logger = logging.getLogger(__name__)

_SKIP_DIRS = {".git", ".hg", ".svn"}


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives, innermost first: ``*.{py,ts}`` -> ``*.py``, ``*.ts``."""
    match = re.search(r"\{([^{}]*)\}", pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    result: list[str] = []
    for option in match.group(1).split(","):
        result.extend(expand_braces(head + option + tail))
    return result


def _translate(glob: str) -> str:
    out = []
    i = 0
    while i < len(glob):
        if glob.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif glob.startswith("**", i):
            out.append(".*")
            i += 2
        elif glob[i] == "*":
            out.append("[^/]*")
            i += 1
        elif glob[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(glob[i]))
            i += 1
    return "".join(out)


@lru_cache(maxsize=64)
def compile_glob(pattern: str) -> re.Pattern:
    """Compile a workspace glob (``**``, ``*``, ``?``, ``{a,b}``) to a regex over posix paths."""
    options = [_translate(p) for p in expand_braces(pattern.strip())]
    return re.compile("^(?:" + "|".join(options) + ")$")


def glob_match(pattern: str, rel_path: str) -> bool:
    return bool(pattern) and compile_glob(pattern).match(rel_path) is not None


def _walk(root: Path) -> list[Path]:
    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        files.extend(Path(dirpath) / name for name in sorted(filenames))
    return files


async def find_files(root: str | Path, match_glob: str, exclude_glob: str = "") -> list[Path]:
    """Candidate files under root, filtered by include and exclude globs.

    Inside a git repository the file list comes from git, so ignored files
    never become candidates.
    """
    root = Path(root).resolve()
    if is_git_repo(root):
        candidates = await list_files(root)
    else:
        candidates = await asyncio.to_thread(_walk, root)

    result = []
    for path in candidates:
        rel = path.relative_to(root).as_posix()
        if not glob_match(match_glob, rel):
            continue
        if exclude_glob and glob_match(exclude_glob, rel):
            continue
        result.append(path)
    return sorted(result)


async def parse_files(
    engine: AnchorEngine,
    files: list[Path],
    max_files: int,
    progress: Callable[[float], None] | None = None,
) -> int:
    """Parse files into the engine cache, pausing briefly every batch.

    Stops once max_files files with anchors have been recorded. Returns that
    count. A failure on one file never aborts the batch.
    """
    total = len(files)
    count = 0
    for i, path in enumerate(files):
        if count >= max_files:
            logger.info("stopping scan at %d files with anchors", max_files)
            break
        if i % SCAN_BATCH_SIZE == 0:
            await asyncio.sleep(SCAN_PAUSE)
        try:
            found = await engine.add_or_replace(path)
        except Exception:
            logger.debug("skipping %s", path, exc_info=True)
            continue
        if not found:
            continue
        count += 1
        if progress is not None:
            progress(count / total)
    return count


async def scan(
    engine: AnchorEngine,
    match_glob: str,
    exclude_glob: str,
    max_files: int,
    progress: Callable[[float], None] | None = None,
) -> int:
    """Enumerate the workspace, clear the engine cache and parse the candidates."""
    files = await find_files(engine.root, match_glob, exclude_glob)
    logger.debug("scanning %d candidate files under %s", len(files), engine.root)
    engine.clear()
    return await parse_files(engine, files, max_files, progress)
