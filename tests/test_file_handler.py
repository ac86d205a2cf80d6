"""Tests for file_handler.py: encoding-aware reads and atomic writes."""

from unittest.mock import patch

import pytest

from lingosync.file_handler import read_file_with_encoding, write_file


class TestReadFileWithEncoding:
    """Tests for read_file_with_encoding()."""

    def test_utf8(self, tmp_path):
        path = tmp_path / "strings.xml"
        path.write_text("<resources>Añadir nota</resources>", encoding="utf-8")
        content, encoding = read_file_with_encoding(path)
        assert content == "<resources>Añadir nota</resources>"
        assert encoding.replace("-", "_").lower() == "utf_8"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.xml"
        path.write_bytes(b"")
        assert read_file_with_encoding(path) == ("", "utf-8")

    def test_ascii_reported_as_utf8(self, tmp_path):
        path = tmp_path / "plain.xml"
        path.write_bytes(b"<resources><string name='a'>Add note</string></resources>")
        _, encoding = read_file_with_encoding(path)
        assert encoding in ("utf-8", "utf_8")

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            read_file_with_encoding(tmp_path / "missing.xml")


class TestWriteFile:
    """Tests for write_file()."""

    def test_creates_parents(self, tmp_path):
        path = tmp_path / "a" / "b" / "strings.xml"
        assert write_file(path, "héllo") == len("héllo".encode("utf-8"))
        assert path.read_text(encoding="utf-8") == "héllo"

    def test_bytes(self, tmp_path):
        path = tmp_path / "raw.bin"
        write_file(path, b"\x00\x01")
        assert path.read_bytes() == b"\x00\x01"

    def test_overwrites(self, tmp_path):
        path = tmp_path / "strings.xml"
        write_file(path, "one")
        write_file(path, "two")
        assert path.read_text() == "two"

    def test_failure_leaves_original_and_no_temp(self, tmp_path):
        path = tmp_path / "strings.xml"
        write_file(path, "original")

        with patch("lingosync.file_handler.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_file(path, "new")

        assert path.read_text() == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["strings.xml"]
