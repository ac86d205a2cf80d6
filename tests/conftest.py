"""Shared pytest fixtures for lingosync tests."""

import shutil
from pathlib import Path

import pytest
from dotenv import load_dotenv

from lingosync.repo import RepoHandler, RepositoryEvents
from lingosync.repo.transport import GitTransport

from resource_samples import DEFAULT_STRINGS, SPANISH_STRINGS, UPSTREAM_URL

load_dotenv()


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create *files* (relative path -> content) below *root*."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


class FakeTransport:
    """In-memory ``Transport``: "clones" by copying a prepared directory.

    Args:
        upstream: Directory copied on clone, or ``None`` to fail the clone.
    """

    def __init__(self, upstream: Path | None) -> None:
        self.upstream = upstream
        self.cloned: list[tuple[str, Path]] = []
        self.deleted: list[Path] = []
        self._scanner = GitTransport()

    def clone(self, url: str, dest: Path) -> bool:
        self.cloned.append((url, dest))
        if self.upstream is None:
            return False
        shutil.copytree(self.upstream, dest)
        return True

    def delete_working_copy(self, path: Path) -> bool:
        self.deleted.append(path)
        if path.exists():
            shutil.rmtree(path)
        return True

    def find_resource_files(self, root: Path) -> list[Path]:
        return self._scanner.find_resource_files(root)


@pytest.fixture
def repos_root(tmp_path):
    """Empty directory holding repositories."""
    root = tmp_path / "repos"
    root.mkdir()
    return root


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def upstream(tmp_path):
    """Upstream working tree with a default and a Spanish strings file."""
    return write_tree(
        tmp_path / "upstream",
        {
            "app/src/main/res/values/strings.xml": DEFAULT_STRINGS,
            "app/src/main/res/values-es/strings.xml": SPANISH_STRINGS,
            "README.md": "# notes\n",
        },
    )


@pytest.fixture
def fake_transport(upstream):
    return FakeTransport(upstream)


@pytest.fixture
def make_repo(repos_root, cache_dir):
    """Factory for handlers on ``UPSTREAM_URL`` with a given transport."""

    def _make(transport=None, **kwargs):
        kwargs.setdefault("events", RepositoryEvents())
        return RepoHandler(
            UPSTREAM_URL,
            repos_root,
            transport=transport or FakeTransport(None),
            cache_dir=cache_dir,
            **kwargs,
        )

    return _make
