"""Three-stage resource sync: clone, scan, copy.

Each stage's work runs in a worker thread via ``asyncio.to_thread`` while
the progress callback is always invoked from the event loop that awaits
``SyncPipeline.run()``.  Stages run strictly one after another, and a stage
that raises is reported as a failed stage; no exception escapes the
worker thread.

Failure policy:

* Clone failure or a working copy without any resource file is fatal.
  With ``teardown_on_failure`` (the default) the whole local repository is
  deleted as well, on the grounds that an unreachable upstream leaves
  nothing worth keeping.
* Problems with individual files are recorded in the report and never
  stop the copy stage.

Locales fed by several upstream files (``strings.xml``, ``arrays.xml``...)
go through load-merge-save once per file, in scan order, so on id
collisions the file processed last wins under ``take-upstream``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Protocol, TypeVar

from lingosync.repo.locales import DEFAULT_LOCALE, normalize_locale, validate_locale
from lingosync.repo.transport import Transport, match_locale
from lingosync.resources.parser import clean_xml
from lingosync.resources.store import Resources
from lingosync.sync.merger import Merger, create_merger
from lingosync.sync.models import (
    FileAction,
    FileResult,
    MergePolicy,
    SyncReport,
    SyncStage,
)

if TYPE_CHECKING:
    from lingosync.repo.handler import RepoHandler

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STAGE_TEXT = {
    SyncStage.CLONE: (
        "Cloning repository",
        "Fetching a temporary copy of the upstream repository",
    ),
    SyncStage.SCAN: (
        "Scanning repository",
        "Looking for string resources in the working copy",
    ),
    SyncStage.COPY: (
        "Copying resources",
        "Merging upstream strings into the local translations",
    ),
}

INVALID_REPO = "The repository could not be cloned"
NO_STRINGS_FOUND = "No string resources were found in the repository"
COPY_FAILED = "Copying the resources failed"


class SyncInProgressError(RuntimeError):
    """Raised when a sync is requested while another one is still running."""


class ProgressCallback(Protocol):
    """Receives progress for one sync run, on the event loop thread."""

    def on_progress_update(self, title: str, description: str) -> None:
        ...  # pragma: no cover

    def on_progress_finished(self, description: str | None, success: bool) -> None:
        ...  # pragma: no cover


class _SilentProgress:
    def on_progress_update(self, title: str, description: str) -> None:
        pass

    def on_progress_finished(self, description: str | None, success: bool) -> None:
        pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncPipeline:
    """Run one sync of *repo* against its upstream.

    Args:
        repo: The repository being synchronised.
        transport: Clone/delete/scan implementation.
        working_copy: Scratch directory for the temporary clone.  It is
            purged before cloning, so it must not be shared with a
            concurrent sync.
        teardown_on_failure: Delete *repo* when the clone or the scan
            fails.
    """

    def __init__(
        self,
        repo: RepoHandler,
        transport: Transport,
        working_copy: Path,
        teardown_on_failure: bool = True,
    ) -> None:
        self.repo = repo
        self.transport = transport
        self.working_copy = working_copy
        self.teardown_on_failure = teardown_on_failure

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(
        self,
        policy: MergePolicy | str = MergePolicy.KEEP_CHANGES,
        callback: ProgressCallback | None = None,
    ) -> SyncReport:
        """Execute clone, scan and copy.

        Raises:
            ValueError: If *policy* is unknown (nothing is touched).
        """
        merger = create_merger(policy)
        policy = MergePolicy(policy)
        callback = callback or _SilentProgress()
        started_at = _now()

        self._announce(callback, SyncStage.CLONE)
        cloned = await self._in_background(self._clone)
        if cloned is None:
            return await self._fail(
                SyncStage.CLONE, INVALID_REPO, policy, started_at, callback
            )

        self._announce(callback, SyncStage.SCAN)
        found = await self._in_background(
            self.transport.find_resource_files, cloned
        )
        if not found:
            await self._in_background(self.transport.delete_working_copy, cloned)
            return await self._fail(
                SyncStage.SCAN, NO_STRINGS_FOUND, policy, started_at, callback
            )

        self._announce(callback, SyncStage.COPY)
        results = await self._in_background(
            self._copy_resources, cloned, found, merger
        )
        if results is None:
            await self._in_background(self.transport.delete_working_copy, cloned)
            self.repo.reload_locales()
            return await self._fail(
                SyncStage.COPY,
                COPY_FAILED,
                policy,
                started_at,
                callback,
                teardown=False,
            )

        self.repo.reload_locales()
        self.repo.discard_open_resources(
            {r.locale for r in results if r.action == FileAction.MERGED}
        )
        self.repo.events.publish_count_changed()

        report = SyncReport(
            repository=str(self.repo),
            policy=policy,
            success=True,
            results=results,
            started_at=started_at,
            completed_at=_now(),
        )
        logger.info("%s", report.summary())
        callback.on_progress_finished(None, True)
        return report

    # ------------------------------------------------------------------
    # Stage helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _announce(callback: ProgressCallback, stage: SyncStage) -> None:
        title, description = _STAGE_TEXT[stage]
        logger.debug("Sync stage: %s", stage.value)
        callback.on_progress_update(title, description)

    @staticmethod
    async def _in_background(func: Callable[..., T], *args: Any) -> T | None:
        try:
            return await asyncio.to_thread(func, *args)
        except Exception:
            logger.exception("Sync step %s failed", getattr(func, "__name__", func))
            return None

    async def _fail(
        self,
        stage: SyncStage,
        message: str,
        policy: MergePolicy,
        started_at: str,
        callback: ProgressCallback,
        teardown: bool | None = None,
    ) -> SyncReport:
        torn_down = False
        if self.teardown_on_failure if teardown is None else teardown:
            logger.warning(
                "Sync of %s failed at %s; deleting local repository",
                self.repo,
                stage.value,
            )
            torn_down = bool(await self._in_background(self.repo.delete))
        else:
            logger.warning("Sync of %s failed at %s", self.repo, stage.value)

        callback.on_progress_finished(message, False)
        return SyncReport(
            repository=str(self.repo),
            policy=policy,
            success=False,
            failed_stage=stage,
            message=message,
            torn_down=torn_down,
            started_at=started_at,
            completed_at=_now(),
        )

    # ------------------------------------------------------------------
    # Stage bodies (worker thread)
    # ------------------------------------------------------------------

    def _clone(self) -> Path | None:
        # a clone must start from an empty directory
        self.transport.delete_working_copy(self.working_copy)
        if self.transport.clone(self.repo.git_url, self.working_copy):
            return self.working_copy
        return None

    def _copy_resources(
        self, clone_dir: Path, found: list[Path], merger: Merger
    ) -> list[FileResult]:
        # default files may have been renamed or removed upstream
        self.repo.clear_default_resources()

        results: list[FileResult] = []
        for path in found:
            relative = _relative_posix(path, clone_dir)
            try:
                results.append(self._copy_one(path, relative, merger))
            except Exception as exc:
                logger.exception("Failed to copy %s", relative)
                results.append(
                    FileResult(
                        remote_path=relative,
                        locale=None,
                        action=FileAction.MERGED,
                        success=False,
                        error=str(exc),
                    )
                )

        self.transport.delete_working_copy(clone_dir)
        return results

    def _copy_one(self, path: Path, relative: str, merger: Merger) -> FileResult:
        matched, locale = match_locale(relative)
        if not matched:
            return FileResult(
                remote_path=relative,
                locale=None,
                action=FileAction.IGNORED,
                error="not a values resource path",
            )
        if locale is None:
            return self._copy_default(path, relative)

        valid, reason = validate_locale(locale)
        if not valid:
            logger.info("Ignoring %s: %s", relative, reason)
            return FileResult(
                remote_path=relative,
                locale=None,
                action=FileAction.IGNORED,
                error=reason,
            )
        return self._merge_locale(path, relative, normalize_locale(locale), merger)

    def _copy_default(self, path: Path, relative: str) -> FileResult:
        fetched = Resources.from_file(path)
        if not fetched.has_translatable():
            return FileResult(
                remote_path=relative,
                locale=DEFAULT_LOCALE,
                action=FileAction.SKIPPED,
                error="no translatable strings",
            )

        dest = self.repo.default_resources_file(path.name)
        if not clean_xml(path, dest):
            return FileResult(
                remote_path=relative,
                locale=DEFAULT_LOCALE,
                action=FileAction.CLEANED,
                success=False,
                error=f"could not write {dest.name}",
            )

        self.repo.add_remote_path(path.name, relative)
        return FileResult(
            remote_path=relative,
            locale=DEFAULT_LOCALE,
            action=FileAction.CLEANED,
            applied=sum(1 for tag in fetched if tag.translatable),
        )

    def _merge_locale(
        self, path: Path, relative: str, locale: str, merger: Merger
    ) -> FileResult:
        fetched = Resources.from_file(path)
        if fetched.is_empty():
            return FileResult(
                remote_path=relative,
                locale=locale,
                action=FileAction.SKIPPED,
                error="no strings found",
            )

        existing = Resources.from_file(self.repo.resources_file(locale))
        outcome = merger.merge(existing, fetched)
        if not existing.save():
            return FileResult(
                remote_path=relative,
                locale=locale,
                action=FileAction.MERGED,
                success=False,
                error="could not save merged resources",
            )
        return FileResult(
            remote_path=relative,
            locale=locale,
            action=FileAction.MERGED,
            applied=outcome.applied,
            kept=outcome.kept,
        )


def _relative_posix(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
