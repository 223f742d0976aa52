"""Shared fixtures for anchors tests."""

import pytest
from git import Repo

from anchors.config import Settings
from anchors.engine import AnchorEngine
from anchors.matcher import compile_matcher
from anchors.parser import parse_anchors
from anchors.tags import TagRegistry


@pytest.fixture
def registry():
    """The default tag registry."""
    return TagRegistry.from_settings()


@pytest.fixture
def matcher(registry):
    """Matcher over the default registry with the default separators and prefixes."""
    settings = Settings()
    return compile_matcher(registry, settings.tags.separators, settings.tags.prefixes)


@pytest.fixture
def parse(registry, matcher):
    """Parse text with the default registry, returning only the index."""

    def _parse(text, display_tag_name=True):
        index, _found = parse_anchors(text, matcher, registry, display_tag_name)
        return index

    return _parse


@pytest.fixture
def workspace(tmp_path):
    """A plain directory with a few annotated files."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text(
        "# TODO: wire up logging\n"
        "# SECTION: handlers [epic=api,seq=2]\n"
        "def handle():\n"
        "    # NOTE: file scoped\n"
        "    pass\n"
        "# !SECTION\n"
    )
    (tmp_path / "src" / "util.js").write_text("// FIXME: off by one [id=offby1,epic=api,seq=1]\n")
    (tmp_path / "README.md").write_text("Nothing to see here.\n")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.js").write_text("// TODO: not ours\n")
    return tmp_path


@pytest.fixture
def git_workspace(workspace):
    """The annotated workspace committed to a git repo, with one ignored file."""
    repo = Repo.init(workspace)
    (workspace / ".gitignore").write_text("ignored.py\nnode_modules/\n")
    (workspace / "ignored.py").write_text("# TODO: ignored by git\n")
    repo.index.add([".gitignore", "src/app.py", "src/util.js", "README.md"])
    repo.index.commit("Initial commit")
    return workspace


@pytest.fixture
def engine(workspace):
    """An engine over the plain workspace with its matcher built and nothing cached."""
    eng = AnchorEngine(workspace, Settings())
    eng.build_matcher()
    eng.loaded = True
    return eng
