"""Runtime configuration for the lingosync command line tool.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    LINGOSYNC_REPOS_ROOT: Directory holding the repositories.
    LINGOSYNC_CACHE_DIR: Scratch directory for temporary clones.
    LINGOSYNC_MERGE_POLICY: ``keep-changes`` or ``take-upstream``.
    LINGOSYNC_TEARDOWN_ON_FAILURE: Delete a repository whose sync cannot
        fetch upstream (default: true).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .config_schema import UnifiedConfig

logger = logging.getLogger(__name__)

MERGE_POLICIES = ("keep-changes", "take-upstream")


@dataclass
class Config:
    repos_root: Path
    cache_dir: Path
    merge_policy: str = "keep-changes"
    teardown_on_failure: bool = True
    clone_depth: int = 1
    clone_timeout: int = 300


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Raises:
        ValueError: If the merge policy is unknown or the two directories
            overlap (a clone purge would wipe the repositories).
    """
    if config.merge_policy not in MERGE_POLICIES:
        raise ValueError(
            f"Invalid merge policy '{config.merge_policy}': must be one of {', '.join(MERGE_POLICIES)}"
        )

    repos = config.repos_root.resolve()
    cache = config.cache_dir.resolve()
    if repos == cache or repos.is_relative_to(cache):
        raise ValueError(
            f"Repositories directory {repos} must not live inside the cache directory {cache}"
        )

    if not config.teardown_on_failure:
        logger.debug(
            "teardown_on_failure disabled: failed syncs keep local data"
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    repos_root: str | None = None,
    cache_dir: str | None = None,
    merge_policy: str | None = None,
    unified: UnifiedConfig | None = None,
) -> Config:
    """Load configuration with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        repos_root: CLI override for the repositories directory.
        cache_dir: CLI override for the scratch directory.
        merge_policy: CLI override for the default merge policy.
        unified: Values from the YAML config files, used when neither a CLI
            argument nor an environment variable is set.

    Returns:
        Validated Config instance.
    """
    fb = unified or UnifiedConfig()

    final_repos = (
        repos_root
        or os.getenv("LINGOSYNC_REPOS_ROOT")
        or fb.storage.repos_root
    )
    final_cache = (
        cache_dir or os.getenv("LINGOSYNC_CACHE_DIR") or fb.storage.cache_dir
    )
    final_policy = (
        merge_policy
        or os.getenv("LINGOSYNC_MERGE_POLICY")
        or fb.sync.merge_policy
    )

    env_teardown = _get_bool_env("LINGOSYNC_TEARDOWN_ON_FAILURE")
    final_teardown = (
        env_teardown
        if env_teardown is not None
        else fb.sync.teardown_on_failure
    )

    config = Config(
        repos_root=Path(final_repos).expanduser(),
        cache_dir=Path(final_cache).expanduser(),
        merge_policy=final_policy.strip().lower(),
        teardown_on_failure=final_teardown,
        clone_depth=fb.sync.clone_depth,
        clone_timeout=fb.sync.clone_timeout,
    )

    validate_config(config)

    return config
