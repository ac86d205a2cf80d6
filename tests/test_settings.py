"""Tests for repo/settings.py: the per-repository settings record."""

import json

from lingosync.repo.settings import SETTINGS_FILENAME, RepoSettings


class TestRepoSettings:
    """Tests for RepoSettings."""

    def test_missing_file_defaults(self, tmp_path):
        settings = RepoSettings(tmp_path)
        assert settings.get_git_url() == ""
        assert settings.get_last_locale() is None
        assert settings.get_remote_paths() == {}
        assert not settings.path.exists()

    def test_setters_persist_immediately(self, tmp_path):
        settings = RepoSettings(tmp_path / "repo")
        settings.set_git_url("https://github.com/acme/notes.git")
        settings.set_last_locale("es")
        settings.add_remote_path("strings.xml", "res/values/strings.xml")

        data = json.loads((tmp_path / "repo" / SETTINGS_FILENAME).read_text())
        assert data == {
            "gitUrl": "https://github.com/acme/notes.git",
            "lastLocale": "es",
            "remotePaths": {"strings.xml": "res/values/strings.xml"},
        }

    def test_reload(self, tmp_path):
        RepoSettings(tmp_path).add_remote_path("a.xml", "res/values/a.xml")
        assert RepoSettings(tmp_path).get_remote_paths() == {"a.xml": "res/values/a.xml"}

    def test_clear_remote_paths(self, tmp_path):
        settings = RepoSettings(tmp_path)
        settings.add_remote_path("a.xml", "res/values/a.xml")
        settings.clear_remote_paths()
        assert RepoSettings(tmp_path).get_remote_paths() == {}

    def test_remote_paths_returns_copy(self, tmp_path):
        settings = RepoSettings(tmp_path)
        settings.get_remote_paths()["x"] = "y"
        assert settings.get_remote_paths() == {}

    def test_unreadable_file_ignored(self, tmp_path):
        (tmp_path / SETTINGS_FILENAME).write_text("{not json", encoding="utf-8")
        assert RepoSettings(tmp_path).get_git_url() == ""

    def test_non_object_file_ignored(self, tmp_path):
        (tmp_path / SETTINGS_FILENAME).write_text("[1, 2]", encoding="utf-8")
        assert RepoSettings(tmp_path).get_remote_paths() == {}
