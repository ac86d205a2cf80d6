"""Merge policies for folding fetched resources into a local store.

- ``KeepChangesMerger``: upstream entries never replace entries the user
  edited since the last sync.
- ``TakeUpstreamMerger``: upstream entries always win.

Both operate entry by entry and only through ``Resources.add_tag()``, so
neither sets the ``modified`` flag.  ``create_merger()`` maps a policy to
its implementation.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Protocol

from lingosync.resources.store import Resources
from lingosync.sync.models import MergePolicy

logger = logging.getLogger(__name__)


class MergeOutcome(NamedTuple):
    applied: int
    kept: int


class Merger(Protocol):
    """Protocol that all merge policies satisfy."""

    def merge(self, existing: Resources, fetched: Resources) -> MergeOutcome:
        """Fold *fetched* into *existing* in place."""
        ...  # pragma: no cover


class KeepChangesMerger:
    """Take upstream content only for entries the user has not touched."""

    def merge(self, existing: Resources, fetched: Resources) -> MergeOutcome:
        applied = kept = 0
        for tag in fetched:
            if existing.was_modified(tag.id):
                kept += 1
                continue
            existing.add_tag(tag)
            applied += 1
        if kept:
            logger.info(
                "Kept %d locally edited entries in %s", kept, existing.path
            )
        return MergeOutcome(applied, kept)


class TakeUpstreamMerger:
    """Overwrite every entry that upstream provides."""

    def merge(self, existing: Resources, fetched: Resources) -> MergeOutcome:
        applied = 0
        for tag in fetched:
            existing.add_tag(tag)
            applied += 1
        return MergeOutcome(applied, 0)


_POLICY_MAP: dict[MergePolicy, type] = {
    MergePolicy.KEEP_CHANGES: KeepChangesMerger,
    MergePolicy.TAKE_UPSTREAM: TakeUpstreamMerger,
}


def create_merger(policy: MergePolicy | str) -> Merger:
    """Create the merger for *policy*.

    Args:
        policy: A ``MergePolicy`` or its string value.

    Raises:
        ValueError: If the policy is not recognised.
    """
    try:
        key = MergePolicy(policy)
    except ValueError:
        raise ValueError(
            f"Unknown merge policy: '{policy}'. Valid policies: {sorted(p.value for p in MergePolicy)}"
        ) from None
    return _POLICY_MAP[key]()  # type: ignore[return-value]
