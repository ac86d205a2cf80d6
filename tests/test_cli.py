"""Tests for cli.py: argument parsing and sub-commands end to end.

git is replaced by the fake transport and logging setup is mocked; config
discovery runs against an empty home and working directory.
"""

import json
from unittest.mock import patch

import pytest

from lingosync import __version__
from lingosync.cli import build_parser, main
from lingosync.repo import RepoHandler

from conftest import FakeTransport
from resource_samples import UPSTREAM_URL


@pytest.fixture
def cli_env(tmp_path, monkeypatch, upstream):
    """Isolated environment; returns a runner for ``main()``."""
    for name in (
        "LINGOSYNC_CONFIG",
        "LINGOSYNC_REPOS_ROOT",
        "LINGOSYNC_CACHE_DIR",
        "LINGOSYNC_MERGE_POLICY",
        "LINGOSYNC_TEARDOWN_ON_FAILURE",
    ):
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)

    repos = tmp_path / "repos"
    cache = tmp_path / "cache"
    transport = FakeTransport(upstream)

    def run(*argv):
        with patch("lingosync.cli.setup_logging"), patch(
            "lingosync.cli.GitTransport", return_value=transport
        ):
            return main(
                ["--repos-root", str(repos), "--cache-dir", str(cache), *argv]
            )

    run.repos = repos
    run.transport = transport
    return run


class TestParser:
    """Tests for build_parser()."""

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["--version"])
        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_policy_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["sync", "notes", "--policy", "bogus"])


class TestCommands:
    """Sub-commands against a temporary repositories directory."""

    def test_add_syncs(self, cli_env, capsys):
        assert cli_env("add", UPSTREAM_URL) == 0

        out = capsys.readouterr().out
        assert "Sync report for 'github.com/acme/notes'" in out
        (repo,) = RepoHandler.list_repositories(cli_env.repos)
        assert repo.locales == ["default", "es"]

    def test_add_github_shorthand(self, cli_env):
        assert cli_env("add", "--github", "acme/notes", "--no-sync") == 0
        (repo,) = RepoHandler.list_repositories(cli_env.repos)
        assert repo.git_url == UPSTREAM_URL

    def test_add_github_bad_shorthand(self, cli_env, capsys):
        assert cli_env("add", "--github", "notes", "--no-sync") == 1
        assert "OWNER/REPOSITORY" in capsys.readouterr().err

    def test_sync_json(self, cli_env, capsys):
        cli_env("add", UPSTREAM_URL, "--no-sync")
        assert cli_env("sync", "notes", "--json") == 0

        data = json.loads(capsys.readouterr().out)
        assert data["success"] is True
        assert data["locales"] == ["es"]

    def test_sync_failure_exit_code(self, cli_env):
        cli_env("add", UPSTREAM_URL, "--no-sync")
        cli_env.transport.upstream = None
        assert cli_env("sync", "github.com/acme/notes") == 1

    def test_unknown_repository(self, cli_env, capsys):
        assert cli_env("locales", "missing") == 1
        assert "No repository matches" in capsys.readouterr().err

    def test_list(self, cli_env, capsys):
        cli_env("add", UPSTREAM_URL)
        capsys.readouterr()

        assert cli_env("list") == 0
        assert "github.com/acme/notes\t1 locales" in capsys.readouterr().out

    def test_create_and_delete_locale(self, cli_env, capsys):
        cli_env("add", UPSTREAM_URL)
        assert cli_env("create-locale", "notes", "fr") == 0
        capsys.readouterr()

        assert cli_env("locales", "notes") == 0
        out = capsys.readouterr().out
        assert "fr\tFrench\t3 untranslated\t(last used)" in out

        assert cli_env("delete-locale", "notes", "fr") == 0
        (repo,) = RepoHandler.list_repositories(cli_env.repos)
        assert not repo.has_locale("fr")

    def test_create_invalid_locale(self, cli_env, capsys):
        cli_env("add", UPSTREAM_URL)
        assert cli_env("create-locale", "notes", "klingon") == 1
        assert "must look like" in capsys.readouterr().err

    def test_export_to_file(self, cli_env, tmp_path):
        cli_env("add", UPSTREAM_URL)
        target = tmp_path / "out" / "strings.xml"

        assert cli_env("export", "notes", "es", "-o", str(target)) == 0
        assert '<string name="greeting">Hola</string>' in target.read_text()

    def test_export_stdout(self, cli_env, capsys):
        cli_env("add", UPSTREAM_URL)
        capsys.readouterr()
        assert cli_env("export", "notes", "es") == 0
        assert capsys.readouterr().out.startswith("<?xml")

    def test_export_missing_locale(self, cli_env):
        cli_env("add", UPSTREAM_URL)
        assert cli_env("export", "notes", "de") == 1

    def test_remote_paths(self, cli_env, capsys):
        cli_env("add", UPSTREAM_URL)
        capsys.readouterr()

        assert cli_env("remote-paths", "notes", "de") == 0
        assert (
            "strings.xml\tapp/src/main/res/values-de/strings.xml"
            in capsys.readouterr().out
        )

    def test_delete(self, cli_env):
        cli_env("add", UPSTREAM_URL)
        assert cli_env("delete", "notes") == 0
        assert RepoHandler.list_repositories(cli_env.repos) == []

    def test_init_config(self, cli_env, tmp_path, capsys):
        target = tmp_path / "cfg" / "config.yml"
        assert cli_env("init-config", str(target)) == 0
        assert target.exists()
        assert str(target) in capsys.readouterr().out


class TestConfiguration:
    """Configuration errors are reported, not raised."""

    def test_invalid_policy_in_env(self, cli_env, monkeypatch, capsys):
        monkeypatch.setenv("LINGOSYNC_MERGE_POLICY", "newest-wins")
        assert cli_env("list") == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_broken_config_file(self, cli_env, monkeypatch, tmp_path, capsys):
        broken = tmp_path / "broken.yml"
        broken.write_text("sync: [unclosed\n")
        monkeypatch.setenv("LINGOSYNC_CONFIG", str(broken))
        assert cli_env("list") == 1
        assert "Configuration error" in capsys.readouterr().err
