"""Unit tests for address parsing, renaming and file name sanitising."""

from itertools import islice

import pytest

from scheme_store.address import (
    FilenameSanitizer,
    basename,
    format_address,
    normalize_path,
    parse_address,
    rename_candidates,
    temporary_name,
)
from scheme_store.errors import InvalidAddressError, UnknownSchemeError


class TestParseAddress:
    def test_splits_scheme_and_path(self):
        assert parse_address("mem://a/b.txt") == ("mem", "a/b.txt")

    def test_lowercases_scheme_only(self):
        assert parse_address("MEM://A.txt") == ("mem", "A.txt")

    def test_empty_path_is_root(self):
        assert parse_address("public://") == ("public", "")

    @pytest.mark.parametrize("address", ["no-scheme", "://x", "1abc://x", "mem:/x", ""])
    def test_malformed(self, address: str):
        with pytest.raises(InvalidAddressError):
            parse_address(address)

    def test_malformed_is_unknown_scheme(self):
        with pytest.raises(UnknownSchemeError):
            parse_address("plain/path.txt")

    def test_format_round_trip(self):
        assert format_address(*parse_address("s3+x://bucket/key")) == "s3+x://bucket/key"


class TestRenameCandidates:
    def test_suffix_counter_before_extension(self):
        assert list(islice(rename_candidates("dir/a.txt"), 3)) == [
            "dir/a.txt",
            "dir/a-1.txt",
            "dir/a-2.txt",
        ]

    def test_without_extension(self):
        assert list(islice(rename_candidates("notes"), 2)) == ["notes", "notes-1"]

    def test_only_last_extension_is_kept(self):
        assert list(islice(rename_candidates("a.tar.gz"), 2))[1] == "a.tar-1.gz"


def test_basename_strips_scheme_and_directories():
    assert basename("public://dir/sub/file.txt") == "file.txt"
    assert basename("a\\b\\c.txt") == "c.txt"
    assert basename("dir/") == ""


def test_temporary_name():
    first, second = temporary_name(), temporary_name()
    assert first.startswith("file")
    assert len(first) == len("file") + 8
    assert first != second


class TestFilenameSanitizer:
    def test_munges_intermediate_extensions(self):
        assert FilenameSanitizer()("evil.php.txt") == "evil.php_.txt"

    def test_replaces_unsafe_runs(self):
        assert FilenameSanitizer()("my file (1).txt") == "my_file_1_.txt"

    def test_strips_directories(self):
        assert FilenameSanitizer()("https://example.test/a/../b/report.pdf") == "report.pdf"

    def test_hidden_file_is_neutralised(self):
        assert FilenameSanitizer()(".htaccess") == "_htaccess"

    @pytest.mark.parametrize("name", ["", "../../", "???", "..."])
    def test_fallback_when_nothing_survives(self, name: str):
        assert FilenameSanitizer()(name) == "file"

    def test_allowed_extensions_are_kept(self):
        sanitizer = FilenameSanitizer(allowed_extensions=["tar"])
        assert sanitizer("backup.tar.gz") == "backup.tar.gz"

    def test_munging_can_be_disabled(self):
        assert FilenameSanitizer(munge_extensions=False)("a.b.c") == "a.b.c"

    def test_custom_replacement(self):
        sanitizer = FilenameSanitizer(replacement="-", munge_extensions=False)
        assert sanitizer("a b.txt") == "a-b.txt"


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("a.txt", "a.txt"),
        ("./a.txt", "a.txt"),
        ("/dir//a.txt", "dir/a.txt"),
        ("dir/a.txt/", "dir/a.txt"),
        ("dir/sub/../a.txt", "dir/a.txt"),
        ("../a.txt", "../a.txt"),
        ("", ""),
    ],
)
def test_normalize_path(path: str, expected: str):
    assert normalize_path(path) == expected
