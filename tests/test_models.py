"""Tests for the enrichment data models."""

from pathlib import Path

import pytest

from depsponsor.models import (
    EnrichedEntry,
    EnrichmentResult,
    FailureReason,
    LookupStatus,
    PackageRef,
    RunConfig,
    SponsorInfo,
)


class TestSponsorInfo:
    """Test SponsorInfo construction rules."""

    def test_found(self):
        info = SponsorInfo.found(["https://github.com/sponsors/BurntSushi"], 12, "BurntSushi/regex")

        assert info.status is LookupStatus.FOUND
        assert info.reason is None
        assert info.url == "https://github.com/sponsors/BurntSushi"
        assert info.sponsor_count == 12

    def test_failed_requires_reason(self):
        with pytest.raises(ValueError):
            SponsorInfo(status=LookupStatus.LOOKUP_FAILED)

    def test_reason_only_on_failure(self):
        with pytest.raises(ValueError):
            SponsorInfo(status=LookupStatus.FOUND, reason=FailureReason.NETWORK_ERROR)

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            SponsorInfo.found(["https://example.com"], -1)

    def test_not_found_has_no_links(self):
        info = SponsorInfo.not_found("o/r")

        assert info.url is None
        assert info.sponsor_links == ()


class TestEnrichedEntry:
    """Test entry helpers and serialization."""

    def setup_method(self):
        self.package = PackageRef("serde", "1.0.200", repository="https://github.com/serde-rs/serde")

    def test_to_dict_found(self):
        entry = EnrichedEntry(
            self.package,
            SponsorInfo.found(["https://github.com/sponsors/dtolnay"], 5, "serde-rs/serde"),
        )

        assert entry.is_sponsorable
        assert entry.to_dict() == {
            "name": "serde",
            "version": "1.0.200",
            "repository": "https://github.com/serde-rs/serde",
            "sponsor_links": ["https://github.com/sponsors/dtolnay"],
            "sponsor_count": 5,
            "status": "found",
            "reason": None,
        }

    def test_to_dict_failed(self):
        entry = EnrichedEntry(self.package, SponsorInfo.failed(FailureReason.RATE_LIMITED))

        record = entry.to_dict()

        assert entry.failed
        assert not entry.is_sponsorable
        assert record["status"] == "lookup-failed"
        assert record["reason"] == "rate_limited"
        assert record["sponsor_links"] == []


class TestEnrichmentResult:
    """Test aggregate views over a result."""

    def test_failure_breakdown(self):
        result = EnrichmentResult(entries=[
            EnrichedEntry(PackageRef("a", "1"), SponsorInfo.failed(FailureReason.NETWORK_ERROR)),
            EnrichedEntry(PackageRef("b", "1"), SponsorInfo.failed(FailureReason.NETWORK_ERROR)),
            EnrichedEntry(PackageRef("c", "1"), SponsorInfo.failed(FailureReason.UNRESOLVED_REPO)),
            EnrichedEntry(PackageRef("d", "1"), SponsorInfo.found(["https://x.test"])),
            EnrichedEntry(PackageRef("e", "1"), SponsorInfo.not_found()),
        ])

        assert result.failures == 3
        assert result.failure_breakdown() == {"network_error": 2, "unresolved_repo": 1}
        assert [entry.package.name for entry in result.sponsorable()] == ["d"]


class TestRunConfig:
    """Test the immutable run configuration."""

    def test_token_not_in_repr(self):
        config = RunConfig(manifest_path=Path("."), token="ghp_secret")

        assert "ghp_secret" not in repr(config)
        assert config.authenticated

    def test_frozen(self):
        config = RunConfig(manifest_path=Path("."))

        with pytest.raises(AttributeError):
            config.concurrency = 2

    def test_unauthenticated_without_token(self):
        assert not RunConfig(manifest_path=Path("."), token=None).authenticated
