"""Command line entry point for lingosync.

All user-facing messages except command output go to stderr, so
``lingosync export ... > strings.xml`` produces a clean document.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

from . import __version__
from .config import MERGE_POLICIES, Config, load_config
from .config_loader import ensure_config, load_hierarchical_config
from .config_schema import build_config
from .file_handler import write_file
from .logger import setup_logging
from .repo import RepoHandler, display_name, repo_id
from .repo.transport import GitTransport
from .sync import SyncInProgressError, format_sync_report, report_to_json

logger = logging.getLogger(__name__)


class ConsoleProgress:
    """Prints sync progress to stderr."""

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stderr

    def on_progress_update(self, title: str, description: str) -> None:
        print(f"{title}... {description}", file=self.stream)

    def on_progress_finished(self, description: str | None, success: bool) -> None:
        if success:
            print("Done.", file=self.stream)
        else:
            print(f"Failed: {description}", file=self.stream)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _handler_kwargs(config: Config) -> dict:
    return {
        "transport": GitTransport(
            depth=config.clone_depth, timeout=config.clone_timeout
        ),
        "cache_dir": config.cache_dir,
        "teardown_on_failure": config.teardown_on_failure,
    }


def _find_repository(config: Config, ref: str) -> RepoHandler:
    """Resolve *ref* (URL, ``host/owner/repo``, repository name or id).

    Raises:
        LookupError: If nothing or more than one repository matches.
    """
    repos = RepoHandler.list_repositories(
        config.repos_root, **_handler_kwargs(config)
    )
    try:
        wanted_id = repo_id(ref)
    except ValueError:
        wanted_id = None

    exact = [
        r for r in repos if ref in (r.root.name, str(r)) or r.root.name == wanted_id
    ]
    if exact:
        return exact[0]

    by_name = [r for r in repos if r.display_name(only_repo=True) == ref]
    if len(by_name) == 1:
        return by_name[0]
    if by_name:
        raise LookupError(
            f"'{ref}' is ambiguous: {', '.join(str(r) for r in by_name)}"
        )
    raise LookupError(f"No repository matches '{ref}'")


def _sync(repo: RepoHandler, policy: str, as_json: bool) -> int:
    try:
        report = asyncio.run(
            repo.sync_resources(policy, callback=ConsoleProgress())
        )
    except SyncInProgressError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(report_to_json(report), indent=2))
    else:
        print(format_sync_report(report))
    return 0 if report.success else 1


# ---------------------------------------------------------------------------
# Sub-commands
# ---------------------------------------------------------------------------


def cmd_add(args, config: Config) -> int:
    if args.github:
        owner, _, name = args.url.partition("/")
        if not owner or not name:
            raise ValueError("--github expects OWNER/REPOSITORY")
        repo = RepoHandler.from_github(
            owner, name, config.repos_root, **_handler_kwargs(config)
        )
    else:
        repo = RepoHandler(args.url, config.repos_root, **_handler_kwargs(config))
    print(f"Added {repo} ({repo.root.name})", file=sys.stderr)
    if args.no_sync:
        return 0
    return _sync(repo, args.policy or config.merge_policy, args.json)


def cmd_sync(args, config: Config) -> int:
    repo = _find_repository(config, args.repository)
    return _sync(repo, args.policy or config.merge_policy, args.json)


def cmd_list(args, config: Config) -> int:
    repos = RepoHandler.list_repositories(config.repos_root)
    if not repos:
        print("No repositories.", file=sys.stderr)
        return 0
    for repo in repos:
        locales = [loc for loc in repo.locales if loc != "default"]
        print(f"{repo.root.name}\t{repo}\t{len(locales)} locales")
    return 0


def cmd_locales(args, config: Config) -> int:
    repo = _find_repository(config, args.repository)
    for locale in repo.locales:
        line = f"{locale}\t{display_name(locale)}"
        if locale != "default":
            pending = len(repo.pending_ids(locale))
            line += f"\t{pending} untranslated"
        if locale == repo.last_locale:
            line += "\t(last used)"
        print(line)
    return 0


def cmd_create_locale(args, config: Config) -> int:
    repo = _find_repository(config, args.repository)
    if not repo.create_locale(args.locale):
        print(f"Error: could not create locale '{args.locale}'", file=sys.stderr)
        return 1
    repo.last_locale = args.locale
    return 0


def cmd_delete_locale(args, config: Config) -> int:
    repo = _find_repository(config, args.repository)
    repo.delete_locale(args.locale)
    return 0


def cmd_export(args, config: Config) -> int:
    repo = _find_repository(config, args.repository)
    if not repo.has_locale(args.locale):
        raise LookupError(f"{repo} has no locale '{args.locale}'")
    document = repo.merge_default_template(args.locale)
    if not document:
        raise LookupError(f"{repo} has no default resources to use as template")
    if args.output:
        write_file(Path(args.output), document)
        print(f"Wrote {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(document)
    repo.last_locale = args.locale
    return 0


def cmd_remote_paths(args, config: Config) -> int:
    repo = _find_repository(config, args.repository)
    if not repo.has_remote_urls():
        print(
            "Warning: some default files have no known upstream path; sync again",
            file=sys.stderr,
        )
    for template, remote in repo.get_template_remote_paths(args.locale).items():
        print(f"{template.name}\t{remote}")
    return 0


def cmd_init_config(args, config: Config) -> int:
    print(ensure_config(Path(args.path) if args.path else None))
    return 0


def cmd_delete(args, config: Config) -> int:
    repo = _find_repository(config, args.repository)
    if not repo.delete():
        print(f"Error: could not fully delete {repo}", file=sys.stderr)
        return 1
    print(f"Deleted {repo}", file=sys.stderr)
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lingosync",
        description="lingosync - keep local translations of Android string resources in sync with upstream",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add a repository and fetch its strings
  lingosync add https://github.com/owner/app

  # Start translating into Spanish
  lingosync create-locale app es

  # Pull upstream again, overwriting local edits
  lingosync sync app --policy take-upstream

  # Write the Spanish translation in upstream layout
  lingosync export app es -o strings.xml
        """,
    )
    parser.add_argument(
        "--repos-root",
        help="Directory holding repositories (overrides LINGOSYNC_REPOS_ROOT and config files)",
    )
    parser.add_argument(
        "--cache-dir",
        help="Scratch directory for temporary clones (overrides LINGOSYNC_CACHE_DIR)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"lingosync version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add", help="Add a repository and sync it")
    p.add_argument("url", help="Git URL, or OWNER/REPOSITORY with --github")
    p.add_argument(
        "--github", action="store_true", help="Treat URL as GitHub OWNER/REPOSITORY"
    )
    p.add_argument("--no-sync", action="store_true", help="Only register the URL")
    p.add_argument("--policy", choices=MERGE_POLICIES)
    p.add_argument("--json", action="store_true", help="Print the report as JSON")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("sync", help="Fetch upstream strings again")
    p.add_argument("repository")
    p.add_argument("--policy", choices=MERGE_POLICIES)
    p.add_argument("--json", action="store_true", help="Print the report as JSON")
    p.set_defaults(func=cmd_sync)

    p = sub.add_parser("list", help="List stored repositories")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("locales", help="List the locales of a repository")
    p.add_argument("repository")
    p.set_defaults(func=cmd_locales)

    p = sub.add_parser("create-locale", help="Start a new translation")
    p.add_argument("repository")
    p.add_argument("locale")
    p.set_defaults(func=cmd_create_locale)

    p = sub.add_parser("delete-locale", help="Delete a translation")
    p.add_argument("repository")
    p.add_argument("locale")
    p.set_defaults(func=cmd_delete_locale)

    p = sub.add_parser("export", help="Render a translation in upstream layout")
    p.add_argument("repository")
    p.add_argument("locale")
    p.add_argument("-o", "--output", help="Write to this file instead of stdout")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser(
        "remote-paths", help="Show where a translation belongs upstream"
    )
    p.add_argument("repository")
    p.add_argument("locale")
    p.set_defaults(func=cmd_remote_paths)

    p = sub.add_parser("init-config", help="Write a starter config file")
    p.add_argument("path", nargs="?", help="Defaults to .lingosync/config.yml")
    p.set_defaults(func=cmd_init_config)

    p = sub.add_parser("delete", help="Delete a repository and its translations")
    p.add_argument("repository")
    p.set_defaults(func=cmd_delete)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv()
    try:
        unified = build_config(load_hierarchical_config())
        setup_logging(
            mode="cli",
            debug=args.debug,
            log_file=args.log_file or unified.logging.file,
            level=unified.logging.level,
        )
        config = load_config(
            repos_root=args.repos_root,
            cache_dir=args.cache_dir,
            unified=unified,
        )
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    try:
        return args.func(args, config)
    except (LookupError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
