"""Tests for resources/store.py and resources/tags.py."""

from unittest.mock import patch

from lingosync.resources import ResTag, Resources, TagKind

from resource_samples import DEFAULT_STRINGS


class TestResTag:
    """Tests for ResTag helpers."""

    def test_for_content_infers_kind(self):
        assert ResTag.for_content("a", "x").kind is TagKind.STRING
        assert ResTag.for_content("a", ["x"]).kind is TagKind.STRING_ARRAY
        assert ResTag.for_content("a", {"one": "x"}).kind is TagKind.PLURALS

    def test_is_blank(self):
        assert ResTag(id="a").is_blank()
        assert ResTag.for_content("a", ["", ""]).is_blank()
        assert ResTag.for_content("a", {"one": ""}).is_blank()
        assert not ResTag.for_content("a", {"one": "x"}).is_blank()


class TestLoading:
    """Tests for Resources.from_file()."""

    def test_missing_file_gives_empty_store(self, tmp_path):
        path = tmp_path / "es" / "strings.xml"
        store = Resources.from_file(path)
        assert store.is_empty()
        assert store.path == path
        assert store.saved

    def test_unparsable_file_gives_empty_store(self, tmp_path):
        path = tmp_path / "strings.xml"
        path.write_text("<resources><string", encoding="utf-8")
        assert Resources.from_file(path).is_empty()

    def test_loads_entries(self, tmp_path):
        path = tmp_path / "strings.xml"
        path.write_text(DEFAULT_STRINGS, encoding="utf-8")
        store = Resources.from_file(path)

        assert len(store) == 4
        assert store.get_content("greeting") == "Hi"
        assert "colors" in store
        assert store.has_translatable()


class TestMutation:
    """Tests for set_content(), add_tag() and delete_id()."""

    def test_set_content_marks_modified_and_unsaved(self):
        store = Resources.empty()
        store.set_content("greeting", "Hola")

        assert store.was_modified("greeting")
        assert store.was_modified()
        assert not store.saved

    def test_set_same_content_is_noop(self, tmp_path):
        path = tmp_path / "strings.xml"
        store = Resources(path, [ResTag(id="greeting", content="Hola")])
        store.set_content("greeting", "Hola")

        assert not store.was_modified("greeting")
        assert store.saved

    def test_add_tag_does_not_mark_modified(self):
        store = Resources.empty()
        store.add_tag(ResTag(id="greeting", content="Hola"))

        assert not store.was_modified()
        assert not store.saved

    def test_add_tag_replaces_in_place(self):
        store = Resources(
            None, [ResTag(id="a", content="1"), ResTag(id="b", content="2")]
        )
        store.add_tag(ResTag(id="a", content="3"))

        assert store.ids() == ["a", "b"]
        assert store.get_content("a") == "3"

    def test_add_tag_copies(self):
        tag = ResTag.for_content("colors", ["Rojo"])
        store = Resources.empty()
        store.add_tag(tag)
        tag.content.append("Verde")

        assert store.get_content("colors") == ["Rojo"]

    def test_delete_id(self):
        store = Resources(None, [ResTag(id="a", content="1")])
        assert store.delete_id("a") is True
        assert store.delete_id("a") is False
        assert store.is_empty()

    def test_has_translatable_false_when_all_fixed(self):
        store = Resources(None, [ResTag(id="a", content="1", translatable=False)])
        assert not store.has_translatable()


class TestPersistence:
    """Tests for save() and delete()."""

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "es" / "strings.xml"
        store = Resources.from_file(path)
        store.set_content("greeting", "Hola")
        store.set_content("notes_count", {"one": "%d nota", "other": "%d notas"})

        assert store.save() is True
        assert store.saved

        reloaded = Resources.from_file(path)
        assert reloaded.get_content("greeting") == "Hola"
        assert reloaded.was_modified("greeting")
        assert reloaded.get_tag("notes_count").kind is TagKind.PLURALS

    def test_save_without_path_fails(self):
        store = Resources.empty()
        store.set_content("a", "b")
        assert store.save() is False
        assert not store.saved

    def test_write_error_keeps_state_for_retry(self, tmp_path):
        path = tmp_path / "es" / "strings.xml"
        store = Resources.from_file(path)
        store.set_content("greeting", "Hola")

        with patch(
            "lingosync.resources.store.write_file",
            side_effect=OSError("disk full"),
        ):
            assert store.save() is False

        assert not store.saved
        assert store.get_content("greeting") == "Hola"
        assert store.was_modified("greeting")
        assert not path.exists()

        assert store.save() is True
        assert Resources.from_file(path).get_content("greeting") == "Hola"

    def test_escaped_markup_survives_save(self, tmp_path):
        path = tmp_path / "es" / "strings.xml"
        path.parent.mkdir()
        path.write_text(
            '<resources><string name="s">&lt;b&gt;hi&lt;/b&gt; &amp; bye</string></resources>',
            encoding="utf-8",
        )
        store = Resources.from_file(path)
        store.set_content("greeting", "Hola")
        assert store.save() is True

        text = path.read_text(encoding="utf-8")
        assert "&lt;b&gt;hi&lt;/b&gt; &amp; bye" in text
        assert "<b>" not in text

    def test_delete_removes_file_and_empty_dir(self, tmp_path):
        path = tmp_path / "es" / "strings.xml"
        store = Resources.from_file(path)
        store.save()

        assert store.delete() is True
        assert not path.exists()
        assert not path.parent.exists()

    def test_to_xml_without_modified(self):
        store = Resources.empty()
        store.set_content("greeting", "Hola")
        assert "modified" not in store.to_xml(keep_modified=False)
