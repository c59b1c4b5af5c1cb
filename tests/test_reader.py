"""Tests for query_log/reader.py"""

import sys

import pytest

from query_log.reader import expand_paths, file_sources, open_source


class TestExpandPaths:
    def test_glob_expansion_sorted(self, tmp_path):
        for name in ("b.log", "a.log", "c.txt"):
            (tmp_path / name).write_text("")
        paths = expand_paths([str(tmp_path / "*.log")])
        assert paths == [str(tmp_path / "a.log"), str(tmp_path / "b.log")]

    def test_deduplicates(self, tmp_path):
        path = tmp_path / "a.log"
        path.write_text("")
        assert expand_paths([str(path), str(tmp_path / "*.log")]) == [str(path)]

    def test_plain_missing_path_passes_through(self, tmp_path):
        missing = str(tmp_path / "missing.log")
        assert expand_paths([missing]) == [missing]

    def test_stdin_marker_kept(self):
        assert expand_paths(["-"]) == ["-"]

    def test_unmatched_glob_only(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            expand_paths([str(tmp_path / "*.log")])


class TestOpenSource:
    def test_reads_lines(self, tmp_path):
        path = tmp_path / "query.log"
        path.write_text("one\ntwo\n", encoding="utf-8")
        with open_source(str(path)) as stream:
            assert list(stream) == ["one\n", "two\n"]

    def test_undecodable_bytes_replaced(self, tmp_path):
        path = tmp_path / "query.log"
        path.write_bytes(b"ok\xff\n")
        with open_source(str(path)) as stream:
            assert list(stream) == ["ok�\n"]

    def test_stdin_passed_through(self):
        with open_source("-") as stream:
            assert stream is sys.stdin

    def test_missing_file_raises_on_open(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            open_source(str(tmp_path / "missing.log"))


def test_file_sources_are_lazy(tmp_path):
    missing = str(tmp_path / "missing.log")
    sources = file_sources([missing])
    assert list(sources) == [missing]
    with pytest.raises(FileNotFoundError):
        sources[missing]()
