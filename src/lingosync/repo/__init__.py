"""Local repository storage, identity and upstream transport."""

from .events import RepositoryEvents
from .handler import RepoHandler
from .identity import (
    build_github_url,
    identity_string,
    normalize_git_url,
    owner_repo,
    repo_id,
)
from .locales import (
    DEFAULT_LOCALE,
    InvalidLocaleError,
    android_qualifier,
    display_name,
    normalize_locale,
    sort_locales,
    validate_locale,
)
from .settings import RepoSettings
from .transport import GitTransport, Transport, match_locale

__all__ = [
    "DEFAULT_LOCALE",
    "GitTransport",
    "InvalidLocaleError",
    "RepoHandler",
    "RepoSettings",
    "RepositoryEvents",
    "Transport",
    "android_qualifier",
    "build_github_url",
    "display_name",
    "identity_string",
    "match_locale",
    "normalize_git_url",
    "normalize_locale",
    "owner_repo",
    "repo_id",
    "sort_locales",
    "validate_locale",
]
