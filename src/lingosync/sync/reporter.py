"""Sync report formatting functions.

- ``format_sync_report`` -- human-readable post-sync summary.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport


def format_sync_report(report: SyncReport) -> str:
    """Format a sync report as human-readable text.

    Sections are only included when they contain at least one result.
    Skipped and ignored files are summarised by count only.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = [
        f"Sync report for '{report.repository}' ({report.policy.value})",
        f"Started: {report.started_at}",
    ]
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    if not report.success:
        lines.append(
            f"FAILED during {report.failed_stage.value}: {report.message}"
        )
        if report.torn_down:
            lines.append("Local repository data was deleted.")
        return "\n".join(lines).rstrip()

    if report.cleaned:
        lines.append("Baseline (default) files:")
        for r in report.cleaned:
            lines.append(f"  {r.remote_path}: {r.applied} translatable strings")
        lines.append("")

    if report.merged:
        by_locale: dict[str, list] = defaultdict(list)
        for r in report.merged:
            by_locale[r.locale].append(r)
        lines.append("Translations:")
        for locale in sorted(by_locale):
            applied = sum(r.applied for r in by_locale[locale])
            kept = sum(r.kept for r in by_locale[locale])
            line = f"  {locale}: {applied} from upstream"
            if kept:
                line += f", {kept} local edits kept"
            lines.append(line)
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {r.remote_path}: {r.error}")
        lines.append("")

    passed_over = len(report.skipped) + len(report.ignored)
    if passed_over:
        lines.append(f"Skipped: {passed_over} files")

    return "\n".join(lines).rstrip()


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a JSON-serialisable dict."""
    return {
        "repository": report.repository,
        "policy": report.policy.value,
        "success": report.success,
        "failed_stage": report.failed_stage.value if report.failed_stage else None,
        "message": report.message,
        "torn_down": report.torn_down,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "summary": {
            "cleaned": len(report.cleaned),
            "merged": len(report.merged),
            "skipped": len(report.skipped) + len(report.ignored),
            "errors": len(report.errors),
        },
        "locales": report.locales,
        "results": [r.model_dump(mode="json") for r in report.results],
    }
