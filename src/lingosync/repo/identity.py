"""Upstream URL normalisation and the repository directory id.

Every URL form a user might type for the same repository
(``github.com/a/b``, ``https://github.com/a/b``, ``.../b.git``,
``git@github.com:a/b.git``) normalises to one canonical clone URL and
one identity string, and therefore to one directory on disk.
"""

from __future__ import annotations

import re

_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_SCP_LIKE = re.compile(r"^(?:[\w.-]+@)?([\w.-]+):(?!//)(.+)$")

GITHUB_OWNER_REPO = re.compile(
    r"(?:https?://github\.com/|git@github\.com:)([\w.-]+?)/([\w.-]+?)(?:\.git)?/?$"
)


def build_github_url(owner: str, repository: str) -> str:
    return f"https://github.com/{owner}/{repository}.git"


def normalize_git_url(url: str) -> str:
    """Return the canonical clone URL for *url*.

    Adds ``https://`` when no scheme is given, rewrites scp-style
    ``git@host:path`` to https, drops trailing slashes and ensures a
    ``.git`` suffix.

    Raises:
        ValueError: If *url* is empty or has no path after the host.
    """
    url = url.strip().rstrip("/")
    if not url:
        raise ValueError("Repository URL cannot be empty")

    if not _SCHEME.match(url):
        scp = _SCP_LIKE.match(url)
        if scp and "@" in url.split(":", 1)[0]:
            url = f"https://{scp.group(1)}/{scp.group(2)}"
        else:
            url = f"https://{url}"

    rest = _SCHEME.sub("", url, count=1)
    if "/" not in rest or not rest.split("/", 1)[1]:
        raise ValueError(f"Invalid repository URL '{url}': missing repository path")

    if not url.endswith(".git"):
        url += ".git"
    return url


def identity_string(url: str) -> str:
    """Render *url* without scheme and ``.git`` suffix, e.g. ``github.com/a/b``."""
    url = url.strip().rstrip("/")
    url = _SCHEME.sub("", url, count=1)
    return url.removesuffix(".git")


def java_string_hash(text: str) -> int:
    """32-bit ``String.hashCode()`` of *text*, as an unsigned integer.

    Repository directories created by earlier installations are named
    after this hash, so it must not change.
    """
    data = text.encode("utf-16-be")
    value = 0
    for i in range(0, len(data), 2):
        unit = (data[i] << 8) | data[i + 1]
        value = (31 * value + unit) & 0xFFFFFFFF
    return value


def repo_id(url: str) -> str:
    """Directory name for the repository at *url* (hex hash of its identity)."""
    return format(java_string_hash(identity_string(normalize_git_url(url))), "x")


def owner_repo(url: str) -> tuple[str, str] | None:
    """``(owner, repository)`` for GitHub URLs, ``None`` for anything else."""
    match = GITHUB_OWNER_REPO.match(url.strip())
    if match is None:
        return None
    return match.group(1), match.group(2)
