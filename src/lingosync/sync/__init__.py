"""Upstream resource synchronisation.

Modules:

- ``pipeline`` -- ``SyncPipeline``: clone, scan and copy stages.
- ``merger``   -- keep-changes and take-upstream merge policies.
- ``models``   -- ``MergePolicy``, ``SyncStage``, ``FileResult``,
  ``SyncReport``.
- ``reporter`` -- human-readable and JSON report formatting.

Usage example
-------------
::

    import asyncio
    from pathlib import Path
    from lingosync.repo import RepoHandler
    from lingosync.sync import MergePolicy, format_sync_report

    repo = RepoHandler("https://github.com/owner/app", Path("repos"))
    report = asyncio.run(repo.sync_resources(MergePolicy.KEEP_CHANGES))
    print(format_sync_report(report))
"""

from .merger import create_merger
from .models import FileAction, FileResult, MergePolicy, SyncReport, SyncStage
from .pipeline import ProgressCallback, SyncInProgressError, SyncPipeline
from .reporter import format_sync_report, report_to_json

__all__ = [
    "FileAction",
    "FileResult",
    "MergePolicy",
    "ProgressCallback",
    "SyncInProgressError",
    "SyncPipeline",
    "SyncReport",
    "SyncStage",
    "create_merger",
    "format_sync_report",
    "report_to_json",
]
