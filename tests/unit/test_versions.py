"""Unit tests for version handling."""

import pytest
from semantic_version import Version

from upgradeable_deployments.exceptions import RecordFormatError
from upgradeable_deployments.versions import (
    check_schema_version,
    coerce_version,
    is_migratable_schema_version,
    satisfies_version,
    semantic_version_to_string,
    try_with_caret,
)


class TestSemanticVersionToString:
    """Test rendering versions reported in different shapes."""

    def test_string_returned_unchanged(self):
        assert semantic_version_to_string("1.2.3") == "1.2.3"

    def test_triple_joined_with_dots(self):
        assert semantic_version_to_string([1, 2, 3]) == "1.2.3"
        assert semantic_version_to_string((0, 10, 0)) == "0.10.0"

    def test_rejects_other_shapes(self):
        """Test that non-integer sequences are rejected."""
        with pytest.raises(ValueError):
            semantic_version_to_string(["1", "2", "3"])
        with pytest.raises(ValueError):
            semantic_version_to_string(123)


class TestCoerceVersion:
    """Test coercion of loose version strings."""

    def test_full_version(self):
        assert coerce_version("1.2.3") == Version("1.2.3")

    def test_missing_parts_default_to_zero(self):
        assert coerce_version("v1.2") == Version("1.2.0")
        assert coerce_version("2") == Version("2.0.0")

    def test_prerelease_dropped(self):
        assert coerce_version("1.2.3-beta.1") == Version("1.2.3")

    def test_no_number(self):
        assert coerce_version("latest") is None


class TestSatisfiesVersion:
    """Test npm-style requirement matching."""

    def test_no_requirement_always_satisfied(self):
        assert satisfies_version("1.0.0", None)
        assert satisfies_version("1.0.0", "")

    def test_caret_range(self):
        assert satisfies_version("1.2.5", "^1.2.0")
        assert satisfies_version("1.3.0", "^1.2.0")
        assert not satisfies_version("2.0.0", "^1.2.0")
        assert not satisfies_version("1.2.5", "^1.3.0")

    def test_tilde_range(self):
        assert satisfies_version("2.0.4", "~2.0")
        assert not satisfies_version("2.1.0", "~2.0")

    def test_identical_strings_match_without_parsing(self):
        """Test that equal strings match even when they are not semver."""
        assert satisfies_version("nightly", "nightly")

    def test_triple_version(self):
        assert satisfies_version([1, 2, 5], "^1.2.0")

    def test_loose_version_is_coerced(self):
        assert satisfies_version("v1.2", "^1.2.0")

    def test_missing_version(self):
        assert not satisfies_version(None, "^1.0.0")

    def test_invalid_requirement(self):
        assert not satisfies_version("1.0.0", "not a range!")


class TestTryWithCaret:
    """Test default requirements derived from installed versions."""

    def test_valid_semver(self):
        assert try_with_caret("1.3.0") == "^1.3.0"
        assert try_with_caret("v2.0.1") == "^2.0.1"

    def test_invalid_semver_unchanged(self):
        assert try_with_caret("1.3") == "1.3"


class TestSchemaVersion:
    """Test record schema version checks."""

    def test_current_version_is_not_migratable(self):
        assert not is_migratable_schema_version("2.2")

    def test_older_versions_are_migratable(self):
        assert is_migratable_schema_version("2")
        assert is_migratable_schema_version("2.0")
        assert is_migratable_schema_version("2.1")

    def test_unknown_versions_are_not_migratable(self):
        assert not is_migratable_schema_version("1")
        assert not is_migratable_schema_version("3")
        assert not is_migratable_schema_version("abc")
        assert not is_migratable_schema_version(None)

    def test_check_accepts_current_and_migratable(self):
        check_schema_version("2.2", "zos.test.json")
        check_schema_version("2", "zos.test.json")

    def test_check_rejects_missing_version(self):
        with pytest.raises(RecordFormatError, match="not found in zos.test.json"):
            check_schema_version(None, "zos.test.json")

    def test_check_rejects_unknown_version(self):
        with pytest.raises(RecordFormatError, match="Unrecognized zos version identifier 1"):
            check_schema_version("1", "zos.test.json")
