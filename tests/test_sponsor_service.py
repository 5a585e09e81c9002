"""Tests for the sponsor service workflow and its exit codes."""

import io
import json
from pathlib import Path
from unittest.mock import Mock

from rich.console import Console

from depsponsor.constants import ExitCodes
from depsponsor.core.sponsor_service import (
    SponsorService,
    all_lookups_rejected,
    default_client_factory,
    default_lister_factory,
)
from depsponsor.models import (
    EnrichedEntry,
    EnrichmentResult,
    FailureReason,
    OutputFormat,
    PackageRef,
    RunConfig,
    SponsorInfo,
)
from depsponsor.utils.exceptions import ConfigError, ManifestError

SETTINGS = {"output": {"unique_repositories": True}, "logging": {"level": "WARNING"}}

PACKAGES = [
    PackageRef("serde", "1.0.200", repository="https://github.com/serde-rs/serde"),
    PackageRef("regex", "1.10.4", repository="https://github.com/rust-lang/regex"),
]


class TestSponsorService:
    """Test list -> enrich -> render orchestration."""

    def setup_method(self):
        self.run_config = RunConfig(
            manifest_path=Path("."),
            output_format=OutputFormat.JSON,
            token="ghp_test",
            concurrency=2,
            settings=SETTINGS,
        )
        self.config_manager = Mock()
        self.config_manager.build_run_config.return_value = self.run_config
        self.lister = Mock()
        self.lister.list_packages.return_value = PACKAGES
        self.client = Mock(spec=["lookup"])
        self.client.lookup.return_value = SponsorInfo.found(["https://github.com/sponsors/dtolnay"], 3, "serde-rs/serde")
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    def make_service(self):
        return SponsorService(
            config_manager=self.config_manager,
            lister_factory=lambda run_config: self.lister,
            client_factory=lambda run_config: self.client,
            console=Console(file=io.StringIO()),
            error_console=Console(file=self.stderr, no_color=True, width=200),
            stream=self.stdout,
        )

    def test_success_renders_json(self):
        exit_code, result = self.make_service().execute_sponsor(manifest_path=".", output="json")

        assert exit_code == ExitCodes.SUCCESS
        assert len(result.entries) == 2
        records = json.loads(self.stdout.getvalue())
        assert [record["name"] for record in records] == ["serde"]
        self.lister.list_packages.assert_called_once_with(Path("."), False)
        self.config_manager.configure_logging.assert_called_once_with(SETTINGS, verbose=False)

    def test_empty_dependency_set(self):
        self.lister.list_packages.return_value = []

        exit_code, result = self.make_service().execute_sponsor()

        assert exit_code == ExitCodes.SUCCESS
        assert result.entries == []
        assert json.loads(self.stdout.getvalue()) == []
        self.client.lookup.assert_not_called()

    def test_manifest_error(self):
        self.lister.list_packages.side_effect = ManifestError("Cargo manifest not found", "/nowhere/Cargo.toml")

        exit_code, result = self.make_service().execute_sponsor(manifest_path="/nowhere")

        assert exit_code == ExitCodes.FILE_ERROR
        assert result is None
        assert "Cargo manifest not found" in self.stderr.getvalue()
        assert self.stdout.getvalue() == ""

    def test_config_error(self):
        self.config_manager.build_run_config.side_effect = ConfigError("Config file not found: x.yaml")

        exit_code, result = self.make_service().execute_sponsor(config_path="x.yaml")

        assert exit_code == ExitCodes.FILE_ERROR
        assert "Config file not found" in self.stderr.getvalue()

    def test_all_lookups_rejected(self):
        self.client.lookup.return_value = SponsorInfo.failed(FailureReason.AUTH_ERROR, "Bad credentials")

        exit_code, result = self.make_service().execute_sponsor()

        assert exit_code == ExitCodes.AUTH_ERROR
        assert result.failures == 2
        assert "GITHUB_TOKEN" in self.stderr.getvalue()

    def test_partial_failures_still_succeed(self):
        self.client.lookup.side_effect = [
            SponsorInfo.failed(FailureReason.NETWORK_ERROR, "reset"),
            SponsorInfo.found(["https://github.com/sponsors/BurntSushi"], None, "rust-lang/regex"),
        ]

        exit_code, result = self.make_service().execute_sponsor()

        assert exit_code == ExitCodes.SUCCESS
        assert result.failures == 1

    def test_missing_token_note(self):
        self.config_manager.build_run_config.return_value = RunConfig(
            manifest_path=Path("."), output_format=OutputFormat.JSON, token=None, settings=SETTINGS
        )

        self.make_service().execute_sponsor()

        assert "GITHUB_TOKEN" in self.stderr.getvalue()
        json.loads(self.stdout.getvalue())

    def test_interrupt(self):
        self.lister.list_packages.side_effect = KeyboardInterrupt

        exit_code, result = self.make_service().execute_sponsor()

        assert exit_code == ExitCodes.INTERRUPTED
        assert result is None
        assert self.stdout.getvalue() == ""


class TestAllLookupsRejected:
    """Test the authentication failure rule."""

    def entry(self, info):
        return EnrichedEntry(PackageRef("x", "1"), info)

    def test_unresolved_entries_are_ignored(self):
        result = EnrichmentResult(entries=[
            self.entry(SponsorInfo.failed(FailureReason.AUTH_ERROR)),
            self.entry(SponsorInfo.failed(FailureReason.UNRESOLVED_REPO)),
        ])

        assert all_lookups_rejected(result)

    def test_only_unresolved_entries(self):
        result = EnrichmentResult(entries=[self.entry(SponsorInfo.failed(FailureReason.UNRESOLVED_REPO))])

        assert not all_lookups_rejected(result)

    def test_one_success_is_enough(self):
        result = EnrichmentResult(entries=[
            self.entry(SponsorInfo.failed(FailureReason.AUTH_ERROR)),
            self.entry(SponsorInfo.not_found()),
        ])

        assert not all_lookups_rejected(result)

    def test_empty_result(self):
        assert not all_lookups_rejected(EnrichmentResult())


class TestDefaultFactories:
    """Test construction of the real lister and client from a RunConfig."""

    def setup_method(self):
        self.run_config = RunConfig(
            manifest_path=Path("."),
            token="ghp_test",
            timeout_seconds=12,
            settings={
                "github": {"timeout_seconds": 30},
                "enrichment": {"concurrency": 4},
                "cargo": {"command": "/opt/cargo/bin/cargo", "timeout_seconds": 60},
            },
        )

    def test_client_factory(self):
        client = default_client_factory(self.run_config)

        assert client.token == "ghp_test"
        assert client.timeout == 12.0
        assert client.authenticated

    def test_lister_factory(self):
        lister = default_lister_factory(self.run_config)

        assert lister.cargo_command == "/opt/cargo/bin/cargo"
        assert lister.timeout == 60
