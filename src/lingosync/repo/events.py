"""Repository change notifications.

The caller creates one ``RepositoryEvents`` and hands it to every
``RepoHandler`` it builds; handlers only ever publish to it.  Nothing here
is module-level, so two independent callers never see each other's
subscribers.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class RepositoryEvents:
    """Subscriber registry for "repository added or removed" notifications."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish_count_changed(self) -> None:
        """Call every listener; a failing listener does not stop the others."""
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Repository listener %r failed", listener)
