"""
Unit tests for the path normalizer.

Covers dot collapsing, absolute-prefix handling (leading separator, drive
letter, UNC), separator tolerance and idempotence.
"""

import pytest

from ossarchiver.normalizer import is_absolute_path, normalize_path, to_forward_slashes


class TestNormalizePath:
    """Test normalize_path on representative inputs."""

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("a/./b", "a/b"),
            ("a/b/../c", "a/c"),
            ("/a/../b", "/b"),
            ("../a", "../a"),
            ("", "."),
            (".", "."),
            ("./", "."),
            ("a/..", "."),
            ("a//b///c", "a/b/c"),
            ("a/b/", "a/b"),
            ("build/J/1/out/a.txt", "build/J/1/out/a.txt"),
        ],
    )
    def test_normalize_basic_cases(self, path, expected):
        """Test dot segments, duplicate separators and empty input."""
        assert normalize_path(path) == expected

    def test_absolute_path_clamps_at_root(self):
        """Test that '..' cannot climb above the root of an absolute path."""
        assert normalize_path("/../etc") == "/etc"
        assert normalize_path("/../../a/b") == "/a/b"
        assert normalize_path("/..") == "/"

    def test_relative_path_keeps_leading_parent_refs(self):
        """Test that unresolvable '..' segments survive on relative paths."""
        assert normalize_path("../../a") == "../../a"
        assert normalize_path("a/../../b") == "../b"
        assert normalize_path("../a/..") == ".."

    def test_parent_ref_after_kept_parent_ref_is_kept(self):
        """Test that '..' never consumes a preceding unresolved '..'."""
        assert normalize_path("../..") == "../.."
        assert normalize_path(".././../x") == "../../x"

    def test_collapse_rescans_exposed_segments(self):
        """Test chains of '..' consuming several parents in a row."""
        assert normalize_path("a/b/c/../../d") == "a/d"
        assert normalize_path("a/./b/./../c/.") == "a/c"


class TestSeparators:
    """Test backslash and mixed separator handling."""

    def test_backslash_separators(self):
        """Test that backslashes act as separators and are preserved."""
        assert normalize_path("a\\b\\..\\c") == "a\\c"

    def test_mixed_separators_same_segments(self):
        """Test that mixed separators give the same segments as forward slashes."""
        mixed = normalize_path("a\\b/./c")
        assert to_forward_slashes(mixed) == normalize_path("a/b/c")

    def test_separator_run_keeps_first_character(self):
        """Test that a run of separators is represented by its first character."""
        assert normalize_path("a\\/b") == "a\\b"
        assert normalize_path("a/\\b") == "a/b"

    def test_drive_letter_prefix(self):
        """Test drive-letter absolute paths."""
        assert normalize_path("C:\\..\\Windows\\.\\System32") == "C:\\Windows\\System32"
        assert normalize_path("c:/a/../b") == "c:/b"

    def test_unc_prefix(self):
        """Test UNC-style double backslash prefix."""
        assert normalize_path("\\\\server\\share\\..\\x") == "\\\\server\\x"

    def test_double_forward_slash_collapses(self):
        """Test that a doubled leading forward slash is a single root."""
        assert normalize_path("//a/b") == "/a/b"


class TestIdempotence:
    """Test normalize(normalize(p)) == normalize(p)."""

    @pytest.mark.parametrize(
        "path",
        [
            "",
            ".",
            "..",
            "../..",
            "a/../..",
            "/a/../../b/./c",
            "a\\b/../c\\.\\d",
            "C:\\x\\..\\..",
            "\\\\host\\share\\..",
            "build/${JOB_NAME}/../1/out//a.txt",
            "./.././a/",
        ],
    )
    def test_idempotent(self, path):
        """Test that a normalized path is already canonical."""
        once = normalize_path(path)
        assert normalize_path(once) == once


class TestHelpers:
    """Test is_absolute_path and to_forward_slashes."""

    @pytest.mark.parametrize("path", ["/a", "\\a", "C:\\a", "d:/a", "\\\\host\\share"])
    def test_is_absolute_path_true(self, path):
        """Test absolute prefixes are detected."""
        assert is_absolute_path(path) is True

    @pytest.mark.parametrize("path", ["", "a/b", "./a", "../a", "C:a"])
    def test_is_absolute_path_false(self, path):
        """Test relative paths are not detected as absolute."""
        assert is_absolute_path(path) is False

    def test_to_forward_slashes(self):
        """Test backslashes are replaced."""
        assert to_forward_slashes("a\\b\\c/d") == "a/b/c/d"
