"""Locally stored translation repositories.

Only the string resources of a repository are kept, laid out as::

    <repos_root>/<hash of identity>/
        default/strings.xml     # cleaned upstream baseline, one file per
        default/arrays.xml      # upstream filename
        es/strings.xml          # one consolidated store per locale
        settings.json

``RepoHandler`` owns one such directory: it lists, creates and deletes
locale stores, runs the sync pipeline and renders translations back into
upstream-shaped documents.
"""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from lingosync.repo.events import RepositoryEvents
from lingosync.repo.identity import (
    build_github_url,
    identity_string,
    normalize_git_url,
    owner_repo,
    repo_id,
)
from lingosync.repo.locales import (
    DEFAULT_LOCALE,
    InvalidLocaleError,
    android_qualifier,
    normalize_locale,
    sort_locales,
    validate_locale,
)
from lingosync.repo.settings import SETTINGS_FILENAME, RepoSettings
from lingosync.repo.transport import GitTransport, Transport
from lingosync.resources.parser import ResourceParseError, apply_template
from lingosync.resources.store import Resources
from lingosync.sync.models import MergePolicy, SyncReport

if TYPE_CHECKING:
    from lingosync.sync.pipeline import ProgressCallback

logger = logging.getLogger(__name__)

STORE_FILENAME = "strings.xml"
WORKING_COPY_NAME = "tmp_clone"

_VALUES_DIR = re.compile(r"(^|/)values/")


class RepoHandler:
    """One locally stored repository.

    Args:
        git_url: Upstream URL in any accepted form (see
            ``normalize_git_url``).
        repos_root: Directory holding all repositories.
        transport: Clone/scan implementation; ``GitTransport()`` by default.
        cache_dir: Where the temporary working copy is created.
        events: Channel notified when repositories are added or removed.
        teardown_on_failure: Delete this repository when a sync cannot
            clone or finds no resources.

    Constructing a handler records the URL in ``settings.json``, which
    creates the repository directory.
    """

    def __init__(
        self,
        git_url: str,
        repos_root: Path,
        *,
        transport: Transport | None = None,
        cache_dir: Path | None = None,
        events: RepositoryEvents | None = None,
        teardown_on_failure: bool = True,
    ) -> None:
        canonical = normalize_git_url(git_url)
        self._setup(
            repos_root / repo_id(canonical),
            transport,
            cache_dir,
            events,
            teardown_on_failure,
        )
        self._settings.set_git_url(canonical)

    def _setup(
        self,
        root: Path,
        transport: Transport | None,
        cache_dir: Path | None,
        events: RepositoryEvents | None,
        teardown_on_failure: bool,
    ) -> None:
        self._root = root
        self._settings = RepoSettings(root)
        self.transport = transport or GitTransport()
        self.cache_dir = cache_dir or Path(tempfile.gettempdir()) / "lingosync"
        self.events = events or RepositoryEvents()
        self.teardown_on_failure = teardown_on_failure
        self._open: dict[str, Resources] = {}
        self._syncing = False
        self._locales: list[str] = []
        self.reload_locales()

    # ------------------------------------------------------------------
    # Alternative constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_github(
        cls, owner: str, repository: str, repos_root: Path, **kwargs
    ) -> RepoHandler:
        return cls(build_github_url(owner, repository), repos_root, **kwargs)

    @classmethod
    def list_repositories(cls, repos_root: Path, **kwargs) -> list[RepoHandler]:
        """Handlers for every repository stored under *repos_root*, sorted."""
        handlers: list[RepoHandler] = []
        if not repos_root.is_dir():
            return handlers
        for root in repos_root.iterdir():
            if not (root / SETTINGS_FILENAME).is_file():
                continue
            handler = cls.__new__(cls)
            handler._setup(
                root,
                kwargs.get("transport"),
                kwargs.get("cache_dir"),
                kwargs.get("events"),
                kwargs.get("teardown_on_failure", True),
            )
            if not handler.git_url:
                logger.warning("Skipping %s: settings have no git URL", root)
                continue
            handlers.append(handler)
        return sorted(handlers)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path:
        return self._root

    @property
    def git_url(self) -> str:
        return self._settings.get_git_url()

    @property
    def working_copy(self) -> Path:
        return self.cache_dir / WORKING_COPY_NAME

    def resources_file(self, locale: str) -> Path:
        return self._root / normalize_locale(locale) / STORE_FILENAME

    def default_resources_file(self, filename: str) -> Path:
        return self._root / DEFAULT_LOCALE / filename

    def default_resources_files(self) -> list[Path]:
        """Every baseline file, sorted by name."""
        default_dir = self._root / DEFAULT_LOCALE
        if not default_dir.is_dir():
            return []
        return sorted(p for p in default_dir.iterdir() if p.is_file())

    def has_default_locale(self) -> bool:
        return bool(self.default_resources_files())

    # ------------------------------------------------------------------
    # Locales
    # ------------------------------------------------------------------

    def reload_locales(self) -> None:
        """Re-read the locale list from disk."""
        found: list[str] = []
        if self._root.is_dir():
            for entry in self._root.iterdir():
                if entry.is_dir() and any(
                    p.is_file() for p in entry.iterdir()
                ):
                    found.append(entry.name)
        self._locales = sort_locales(found)

    @property
    def locales(self) -> list[str]:
        """Known locales sorted by display name, ``default`` included."""
        return list(self._locales)

    def has_locale(self, locale: str) -> bool:
        if normalize_locale(locale) == DEFAULT_LOCALE:
            return self.has_default_locale()
        return self.resources_file(locale).is_file()

    def create_locale(self, locale: str) -> bool:
        """Create an empty store for *locale*, persisted immediately.

        Returns:
            ``True`` if the locale exists afterwards, ``False`` if it could
            not be saved.

        Raises:
            InvalidLocaleError: If *locale* is not a valid identifier.
        """
        valid, reason = validate_locale(locale)
        if not valid:
            raise InvalidLocaleError(reason)
        if self.has_locale(locale):
            return True

        locale = normalize_locale(locale)
        resources = Resources.from_file(self.resources_file(locale))
        if not resources.save():
            return False
        self._open[locale] = resources
        self._locales = sort_locales(self._locales + [locale])
        logger.info("Created locale %s in %s", locale, self)
        return True

    def delete_locale(self, locale: str) -> None:
        """Delete the store for *locale*; no-op if it does not exist."""
        locale = normalize_locale(locale)
        self._open.pop(locale, None)
        if locale == DEFAULT_LOCALE or not self.has_locale(locale):
            return
        Resources.from_file(self.resources_file(locale)).delete()
        if locale in self._locales:
            self._locales.remove(locale)
        logger.info("Deleted locale %s from %s", locale, self)

    def is_empty(self) -> bool:
        """True when no locale (not even the baseline) is stored."""
        return not self._locales

    # ------------------------------------------------------------------
    # Loading resources
    # ------------------------------------------------------------------

    def load_resources(self, locale: str) -> Resources:
        """Fresh store for *locale* read from disk (empty if absent)."""
        return Resources.from_file(self.resources_file(locale))

    def open_resources(self, locale: str) -> Resources:
        """Store for *locale* shared across calls until saved changes are synced.

        ``any_unsaved()`` and ``any_modified()`` take stores handed out
        here into account.
        """
        locale = normalize_locale(locale)
        if locale not in self._open:
            self._open[locale] = self.load_resources(locale)
        return self._open[locale]

    def discard_open_resources(self, locales: set[str] | None = None) -> None:
        """Forget cached stores for *locales* (all when ``None``)."""
        if locales is None:
            self._open.clear()
            return
        for locale in locales:
            if locale:
                self._open.pop(normalize_locale(locale), None)

    def load_default_resources(self) -> Resources:
        """Union of every baseline file, in file then entry order."""
        resources = Resources.empty()
        for path in self.default_resources_files():
            for tag in Resources.from_file(path):
                resources.add_tag(tag)
        return resources

    def pending_ids(self, locale: str, show_translated: bool = False) -> list[str]:
        """Translatable baseline ids, optionally only untranslated ones."""
        target = self.open_resources(locale)
        ids = []
        for tag in self.load_default_resources():
            if not tag.translatable:
                continue
            if not show_translated:
                existing = target.get_tag(tag.id)
                if existing is not None and not existing.is_blank():
                    continue
            ids.append(tag.id)
        return ids

    def any_modified(self) -> bool:
        """Whether any locale holds entries edited since the last sync.

        A modified entry is not necessarily unsaved.
        """
        for locale in self._locales:
            if locale == DEFAULT_LOCALE:
                continue
            store = self._open.get(locale)
            if store is None:
                store = self.load_resources(locale)
            if store.was_modified():
                return True
        return any(store.was_modified() for store in self._open.values())

    def any_unsaved(self) -> bool:
        """Whether a store handed out by ``open_resources()`` has unsaved edits."""
        return any(not store.saved for store in self._open.values())

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def apply_template(
        self, template: Path, locale: str, resources: Resources | None = None
    ) -> str:
        """Render *locale* into the shape of *template*.

        Uses *resources* when given, otherwise the open (or on-disk) store.

        Returns:
            The document, or ``""`` if the locale or template is missing
            or the template cannot be parsed.
        """
        if not self.has_locale(locale) or not template.is_file():
            return ""
        store = resources if resources is not None else self.open_resources(locale)
        try:
            return apply_template(template, store)
        except (OSError, ResourceParseError) as exc:
            logger.error("Cannot apply template %s: %s", template, exc)
            return ""

    def merge_default_template(self, locale: str) -> str:
        """Render *locale* against every baseline file.

        With several baseline files the documents are concatenated, each
        preceded by an XML comment naming its file.
        """
        files = self.default_resources_files()
        if not files:
            return ""
        if len(files) == 1:
            return self.apply_template(files[0], locale)

        parts = []
        for template in files:
            parts.append(f"<!-- {template.name} -->\n")
            parts.append(self.apply_template(template, locale))
            parts.append("\n")
        return "".join(parts)

    # ------------------------------------------------------------------
    # Remote paths
    # ------------------------------------------------------------------

    def add_remote_path(self, filename: str, remote_path: str) -> None:
        self._settings.add_remote_path(filename, remote_path)

    def get_remote_paths(self) -> dict[str, str]:
        return self._settings.get_remote_paths()

    def has_remote_urls(self) -> bool:
        """Whether every baseline file knows its upstream path."""
        files = self.default_resources_files()
        paths = self._settings.get_remote_paths()
        return len(files) == len(paths) and all(p.name in paths for p in files)

    def get_template_remote_paths(self, locale: str) -> dict[Path, str]:
        """``baseline template -> upstream path`` for *locale*'s translation.

        ``res/values/strings.xml`` maps to ``res/values-pt-rBR/strings.xml``
        for ``pt-BR``.
        """
        qualifier = android_qualifier(locale)
        return {
            self.default_resources_file(filename): _VALUES_DIR.sub(
                rf"\1values-{qualifier}/", remote, count=1
            )
            for filename, remote in self._settings.get_remote_paths().items()
        }

    def clear_default_resources(self) -> None:
        """Forget the baseline: remote paths and cleaned default files."""
        self._settings.clear_remote_paths()
        for path in self.default_resources_files():
            path.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def last_locale(self) -> str | None:
        return self._settings.get_last_locale()

    @last_locale.setter
    def last_locale(self, locale: str | None) -> None:
        self._settings.set_last_locale(
            normalize_locale(locale) if locale else None
        )

    def is_github_repository(self) -> bool:
        return owner_repo(self.git_url) is not None

    def to_owner_repo(self) -> str:
        """``owner/repository`` for GitHub repositories.

        Raises:
            ValueError: If the upstream is not on GitHub.
        """
        parts = owner_repo(self.git_url)
        if parts is None:
            raise ValueError(
                "Only repositories with a GitHub url can be converted to owner and repository."
            )
        return "/".join(parts)

    # ------------------------------------------------------------------
    # Sync and deletion
    # ------------------------------------------------------------------

    async def sync_resources(
        self,
        policy: MergePolicy | str = MergePolicy.KEEP_CHANGES,
        callback: ProgressCallback | None = None,
    ) -> SyncReport:
        """Fetch upstream and merge it into the local stores.

        See ``lingosync.sync.pipeline`` for the stages and failure policy.

        Raises:
            SyncInProgressError: If a sync of this handler is still running.
            ValueError: If *policy* is unknown.
        """
        from lingosync.sync.pipeline import SyncInProgressError, SyncPipeline

        if self._syncing:
            raise SyncInProgressError(f"A sync of {self} is already running")
        self._syncing = True
        try:
            pipeline = SyncPipeline(
                self,
                self.transport,
                self.working_copy,
                teardown_on_failure=self.teardown_on_failure,
            )
            return await pipeline.run(policy, callback)
        finally:
            self._syncing = False

    def delete(self) -> bool:
        """Delete the whole repository directory."""
        ok = True
        if self._root.exists():
            try:
                shutil.rmtree(self._root)
            except OSError as exc:
                logger.error("Failed to delete repository %s: %s", self._root, exc)
                ok = False
        self._open.clear()
        self._locales = []
        self.events.publish_count_changed()
        return ok

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return identity_string(self.git_url)

    def display_name(self, only_repo: bool = False) -> str:
        name = str(self)
        return name.rsplit("/", 1)[-1] if only_repo else name

    def __repr__(self) -> str:
        return f"RepoHandler({self.git_url!r}, root={self._root!s})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepoHandler):
            return NotImplemented
        return self._root == other._root

    def __hash__(self) -> int:
        return hash(self._root)

    def __lt__(self, other: RepoHandler) -> bool:
        return str(self) < str(other)
