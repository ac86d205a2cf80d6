"""Unified configuration schema for lingosync.

Defines Pydantic models for the unified config structure with dedicated
sections for on-disk storage, sync behaviour and logging.

Usage:
    from lingosync.config_schema import UnifiedConfig, build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class StorageConfig(BaseModel):
    """Where repositories and transient working copies live.

    Both paths accept ``~`` and are expanded by ``load_config()``.
    """

    repos_root: str = Field(
        default="~/.local/share/lingosync/repos",
        description="Directory holding one sub-directory per repository",
    )
    cache_dir: str = Field(
        default="~/.cache/lingosync",
        description="Scratch directory for temporary clones",
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Defaults applied to every sync run.

    Attributes:
        merge_policy: ``keep-changes`` never overwrites entries the user
            edited since the last sync; ``take-upstream`` always does.
        teardown_on_failure: Delete the whole repository when the clone or
            the resource scan fails.
        clone_depth: Shallow clone depth (0 clones full history).
        clone_timeout: Seconds before a clone is abandoned.
    """

    merge_policy: Literal["keep-changes", "take-upstream"] = Field(
        default="keep-changes", description="Default merge policy"
    )
    teardown_on_failure: bool = Field(
        default=True,
        description="Delete local repository data when a sync cannot fetch upstream",
    )
    clone_depth: int = Field(default=1, ge=0, description="git clone --depth")
    clone_timeout: int = Field(
        default=300,
        ge=1,
        le=3600,
        description="Clone timeout in seconds (1-3600)",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    storage: StorageConfig = Field(default_factory=StorageConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
