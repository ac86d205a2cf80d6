"""Pydantic models for the resource sync pipeline.

- ``MergePolicy``: how fetched entries treat locally edited ones.
- ``SyncStage``: the three pipeline stages.
- ``FileAction``: what happened to one discovered upstream file.
- ``FileResult``: outcome for one upstream file.
- ``SyncReport``: aggregate outcome of a sync run.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class MergePolicy(str, Enum):
    """Merge policy selected per sync invocation."""

    KEEP_CHANGES = "keep-changes"
    TAKE_UPSTREAM = "take-upstream"


class SyncStage(str, Enum):
    """Pipeline stages, in execution order."""

    CLONE = "clone"
    SCAN = "scan"
    COPY = "copy"


class FileAction(str, Enum):
    """What the copy stage did with one discovered file."""

    CLEANED = "cleaned"
    MERGED = "merged"
    SKIPPED = "skipped"
    IGNORED = "ignored"


class FileResult(BaseModel):
    """Outcome for one upstream resource file.

    Attributes:
        remote_path: Path relative to the working copy root.
        locale: Target locale, ``default`` for baseline files, ``None``
            when the path carries no usable locale.
        action: What was done with the file.
        success: Whether the action completed.
        applied: Entries taken from upstream.
        kept: Entries left alone because the user had edited them.
        error: Reason for failure or skip.
    """

    remote_path: str
    locale: str | None
    action: FileAction
    success: bool = True
    applied: int = 0
    kept: int = 0
    error: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for one sync run.

    Attributes:
        repository: Identity string of the repository.
        policy: Merge policy used.
        success: ``False`` when a stage failed.
        failed_stage: The stage that failed, if any.
        message: Human-readable failure description.
        torn_down: Whether the local repository was deleted because of
            the failure.
        results: Per-file results from the copy stage.
        started_at: ISO 8601 timestamp when the sync started.
        completed_at: ISO 8601 timestamp when the sync completed.
    """

    repository: str
    policy: MergePolicy
    success: bool
    failed_stage: SyncStage | None = None
    message: str | None = None
    torn_down: bool = False
    results: list[FileResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _with_action(self, action: FileAction) -> list[FileResult]:
        return [r for r in self.results if r.action == action and r.success]

    @property
    def cleaned(self) -> list[FileResult]:
        """Default files written to the baseline."""
        return self._with_action(FileAction.CLEANED)

    @property
    def merged(self) -> list[FileResult]:
        """Locale files merged into a store."""
        return self._with_action(FileAction.MERGED)

    @property
    def skipped(self) -> list[FileResult]:
        return self._with_action(FileAction.SKIPPED)

    @property
    def ignored(self) -> list[FileResult]:
        return self._with_action(FileAction.IGNORED)

    @property
    def errors(self) -> list[FileResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    @property
    def locales(self) -> list[str]:
        """Sorted locales that received upstream content."""
        return sorted({r.locale for r in self.merged if r.locale})

    def summary(self) -> str:
        """Format a short human-readable summary of the sync run."""
        status = "ok" if self.success else f"failed at {self.failed_stage.value}"
        lines = [
            f"Sync of '{self.repository}' ({self.policy.value}): {status}",
            f"  Baseline files: {len(self.cleaned)}",
            f"  Locale files:   {len(self.merged)}",
            f"  Skipped:        {len(self.skipped) + len(self.ignored)}",
            f"  Errors:         {len(self.errors)}",
        ]
        return "\n".join(lines)
