"""Working-copy transport: clone, delete and scan a temporary checkout.

``Transport`` is the narrow interface the sync pipeline depends on;
``GitTransport`` implements it with the ``git`` command line client.  Tests
substitute an in-memory fake.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

# One capturing group: the locale, absent for the default "values/" directory.
LOCALE_PATH_PATTERN = re.compile(
    r"(?:^|/)values(?:-([a-z]{2,3}(?:-r?[A-Z]{2})?))?/[^/]+\.xml$"
)


def match_locale(relative_path: str) -> tuple[bool, str | None]:
    """Classify a repository-relative POSIX path.

    Returns:
        ``(matched, locale)``; *locale* is ``None`` for default resources.
    """
    match = LOCALE_PATH_PATTERN.search(relative_path)
    if match is None:
        return (False, None)
    return (True, match.group(1))


class Transport(Protocol):
    """What the sync pipeline needs from version control."""

    def clone(self, url: str, dest: Path) -> bool:
        """Clone *url* into the empty directory *dest*."""
        ...  # pragma: no cover

    def delete_working_copy(self, path: Path) -> bool:
        """Remove *path* recursively; ``True`` if it is gone afterwards."""
        ...  # pragma: no cover

    def find_resource_files(self, root: Path) -> list[Path]:
        """Resource files in path order; ``values/`` sorts before its ``values-xx/`` siblings."""
        """Return every Android values resource file below *root*."""
        ...  # pragma: no cover


class GitTransport:
    """``Transport`` backed by the ``git`` executable.

    Args:
        depth: Shallow clone depth; 0 clones the full history.
        timeout: Seconds before a clone is abandoned.
        executable: Name or path of the git binary.
    """

    def __init__(
        self, depth: int = 1, timeout: int = 300, executable: str = "git"
    ) -> None:
        self.depth = depth
        self.timeout = timeout
        self.executable = executable

    def clone(self, url: str, dest: Path) -> bool:
        cmd = [self.executable, "clone", "--quiet"]
        if self.depth > 0:
            cmd += ["--depth", str(self.depth)]
        cmd += [url, str(dest)]

        logger.info("Cloning %s into %s", url, dest)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
            )
        except subprocess.TimeoutExpired:
            logger.error("Clone of %s timed out after %ss", url, self.timeout)
            return False
        except FileNotFoundError:
            logger.error("git executable '%s' not found", self.executable)
            return False

        if result.returncode != 0:
            logger.error(
                "Clone of %s failed (exit %d): %s",
                url,
                result.returncode,
                result.stderr.strip(),
            )
            return False
        return dest.is_dir()

    def delete_working_copy(self, path: Path) -> bool:
        if not path.exists():
            return True
        try:
            shutil.rmtree(path)
        except OSError as exc:
            logger.error("Failed to delete %s: %s", path, exc)
            return False
        return True

    def find_resource_files(self, root: Path) -> list[Path]:
        found: list[Path] = []
        # Path order: res/values/ comes before its res/values-xx/ siblings
        for path in sorted(root.rglob("*.xml")):
            relative = path.relative_to(root)
            if ".git" in relative.parts or not path.is_file():
                continue
            if match_locale(relative.as_posix())[0]:
                found.append(path)
        logger.debug("Found %d resource files under %s", len(found), root)
        return found
