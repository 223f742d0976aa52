"""Tests for workspace enumeration and paced scanning."""

import pytest

from anchors.constants import DEFAULT_EXCLUDE_FILES
from anchors.workspace import expand_braces, find_files, glob_match, parse_files, scan


def test_expand_braces():
    assert expand_braces("*.{py,js}") == ["*.py", "*.js"]
    assert expand_braces("{a,b}/{c,d}") == ["a/c", "a/d", "b/c", "b/d"]
    assert expand_braces("plain") == ["plain"]


@pytest.mark.parametrize(
    "pattern, path, expected",
    [
        ("**/*", "a.py", True),
        ("**/*", "deep/er/a.py", True),
        ("*.py", "a.py", True),
        ("*.py", "pkg/a.py", False),
        ("**/*.py", "pkg/a.py", True),
        ("src/**", "src/a/b.c", True),
        ("src/**", "lib/a.c", False),
        ("?.md", "a.md", True),
        ("**/*.{py,js}", "x/y.js", True),
        (DEFAULT_EXCLUDE_FILES, "node_modules/dep.js", True),
        (DEFAULT_EXCLUDE_FILES, "pkg/node_modules/dep.js", True),
        (DEFAULT_EXCLUDE_FILES, "src/builder.py", False),
        ("", "a.py", False),
    ],
)
def test_glob_match(pattern, path, expected):
    assert glob_match(pattern, path) is expected


@pytest.mark.asyncio
async def test_find_files_plain_directory(workspace):
    files = await find_files(workspace, "**/*", DEFAULT_EXCLUDE_FILES)
    rel = [p.relative_to(workspace).as_posix() for p in files]
    assert rel == ["README.md", "src/app.py", "src/util.js"]


@pytest.mark.asyncio
async def test_find_files_git_respects_ignore(git_workspace):
    files = await find_files(git_workspace, "**/*.py")
    rel = [p.relative_to(git_workspace.resolve()).as_posix() for p in files]
    assert rel == ["src/app.py"]


@pytest.mark.asyncio
async def test_parse_files_stops_at_max_files(engine, workspace):
    files = [workspace / "src" / "app.py", workspace / "src" / "util.js"]
    assert await parse_files(engine, files, max_files=1) == 1
    assert list(engine.cache) == [files[0]]


@pytest.mark.asyncio
async def test_parse_files_survives_failures(engine, workspace, monkeypatch):
    bad = workspace / "src" / "app.py"
    original = engine.add_or_replace

    async def flaky(uri):
        if uri == bad:
            raise RuntimeError("unreadable")
        return await original(uri)

    monkeypatch.setattr(engine, "add_or_replace", flaky)
    count = await parse_files(engine, [bad, workspace / "src" / "util.js"], max_files=10)
    assert count == 1


@pytest.mark.asyncio
async def test_scan_reports_progress_and_keeps_empty_files(engine, workspace):
    engine.cache[workspace / "stale.py"] = None
    progress = []
    count = await scan(engine, "**/*", DEFAULT_EXCLUDE_FILES, 250, progress.append)

    assert count == 2
    assert progress and progress[-1] <= 1
    assert workspace / "stale.py" not in engine.cache
    assert engine.is_cached(workspace / "README.md")
