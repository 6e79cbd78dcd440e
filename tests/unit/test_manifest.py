"""
Unit tests for the package list parser.

Verifies name/version extraction, policy-package filtering, tolerance of
unrelated lines, and accumulation into a caller-supplied mapping.
"""

from __future__ import annotations

import pytest

from igtf_probe.domain.manifest import load_manifest, parse_manifest
from tests.assertions import ResultAssertions


class TestParseManifest:
    def test_extracts_name_and_version(self) -> None:
        """
        GIVEN the line ca_Foo-1.2-3
        WHEN parse_manifest is called
        THEN it yields {"Foo": "1.2"}.
        """
        assert parse_manifest("ca_Foo-1.2-3\n") == {"Foo": "1.2"}

    def test_policy_package_is_excluded(self) -> None:
        assert parse_manifest("ca_policy-1.0-1\n") == {}
        assert parse_manifest("ca_policy-egi-core-1.127-1\n") == {}

    def test_names_may_contain_hyphens(self) -> None:
        assert parse_manifest("ca_UKeScienceCA-2B-1.127-1") == {"UKeScienceCA-2B": "1.127"}

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "# comment",
            "ca-policy-egi-core-1.127-1",
            "ca_NoRevision-1.127",
            "lcg-CA-1.127-1",
            "ca_ spaced-1.1-1",
        ],
    )
    def test_non_matching_lines_are_ignored(self, line: str) -> None:
        assert parse_manifest(line) == {}

    def test_tolerates_surrounding_whitespace_and_crlf(self) -> None:
        content = "  ca_AAACertificateServices-1.127-1  \r\nca_DigiCertGridCA-1G2-1.127-1\r\n"
        assert parse_manifest(content) == {
            "AAACertificateServices": "1.127",
            "DigiCertGridCA-1G2": "1.127",
        }

    def test_accumulates_into_supplied_mapping(self) -> None:
        packages = {"Existing": "1.0"}
        returned = parse_manifest("ca_Added-1.1-1\n", packages)
        assert returned is packages
        assert packages == {"Existing": "1.0", "Added": "1.1"}

    def test_later_line_wins_for_duplicate_names(self) -> None:
        assert parse_manifest("ca_Foo-1.1-1\nca_Foo-1.2-1\n") == {"Foo": "1.2"}


class TestLoadManifest:
    def test_wraps_read_only_manifest(self) -> None:
        manifest = ResultAssertions.assert_success(load_manifest("ca_Foo-1.2-3\nca_Bar-1.2-3\n"))
        assert "Foo" in manifest
        assert manifest.version_of("Bar") == "1.2"
        assert manifest.names() == frozenset({"Foo", "Bar"})
        with pytest.raises(TypeError):
            manifest.packages["Baz"] = "1.0"  # type: ignore[index]

    def test_empty_content_gives_empty_manifest(self) -> None:
        manifest = ResultAssertions.assert_success(load_manifest(""))
        assert len(manifest) == 0
