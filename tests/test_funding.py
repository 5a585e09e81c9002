"""Tests for FUNDING.yml parsing."""

from depsponsor.enhancers.funding import parse_funding_file


class TestParseFundingFile:
    """Test conversion of FUNDING.yml documents into sponsor URLs."""

    def test_github_list_and_platforms(self):
        text = """
github: [BurntSushi, dtolnay]
patreon: someone
open_collective: tokio
ko_fi: coffee
"""
        assert parse_funding_file(text) == [
            "https://github.com/sponsors/BurntSushi",
            "https://github.com/sponsors/dtolnay",
            "https://www.patreon.com/someone",
            "https://opencollective.com/tokio",
            "https://ko-fi.com/coffee",
        ]

    def test_custom_urls(self):
        text = """
custom: ["https://example.com/donate", "paypal.me/someone"]
"""
        assert parse_funding_file(text) == [
            "https://example.com/donate",
            "https://paypal.me/someone",
        ]

    def test_tidelift(self):
        assert parse_funding_file("tidelift: cargo/serde") == [
            "https://tidelift.com/funding/github/cargo/serde"
        ]

    def test_empty_values_and_unknown_platforms_ignored(self):
        text = """
github: ~
patreon: ""
made_up_platform: someone
liberapay: rustacean
"""
        assert parse_funding_file(text) == ["https://liberapay.com/rustacean"]

    def test_duplicates_removed(self):
        text = """
github: [alice, alice]
custom: https://github.com/sponsors/alice
"""
        assert parse_funding_file(text) == ["https://github.com/sponsors/alice"]

    def test_invalid_yaml(self):
        assert parse_funding_file("github: [unclosed") == []

    def test_non_mapping_document(self):
        assert parse_funding_file("- just\n- a list\n") == []
        assert parse_funding_file("") == []
