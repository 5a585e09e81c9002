"""Tests for configuration loading, credential resolution and RunConfig construction."""

import logging
import subprocess
from pathlib import Path
from unittest.mock import Mock

import pytest

from depsponsor.core.config_manager import (
    USER_CONFIG_FILENAME,
    ConfigManager,
    resolve_github_token,
)
from depsponsor.models import OutputFormat
from depsponsor.utils.exceptions import ConfigError


class TestResolveGithubToken:
    """Test GITHUB_TOKEN / gh CLI precedence."""

    def test_environment_variable_wins(self):
        runner = Mock()

        token = resolve_github_token(env={"GITHUB_TOKEN": " ghp_env \n"}, runner=runner)

        assert token == "ghp_env"
        runner.assert_not_called()

    def test_falls_back_to_gh_cli(self):
        runner = Mock(return_value=Mock(returncode=0, stdout="gho_cli\n"))

        token = resolve_github_token(env={"GITHUB_TOKEN": "  "}, runner=runner)

        assert token == "gho_cli"
        args, kwargs = runner.call_args
        assert args[0] == ["gh", "auth", "token"]
        assert kwargs["timeout"] == 10

    def test_gh_not_installed(self):
        runner = Mock(side_effect=FileNotFoundError("gh"))

        assert resolve_github_token(env={}, runner=runner) is None

    def test_gh_timeout(self):
        runner = Mock(side_effect=subprocess.TimeoutExpired(["gh"], 10))

        assert resolve_github_token(env={}, runner=runner) is None

    def test_gh_not_logged_in(self):
        runner = Mock(return_value=Mock(returncode=1, stdout="", stderr="not logged in"))

        assert resolve_github_token(env={}, runner=runner) is None

    def test_gh_empty_output(self):
        runner = Mock(return_value=Mock(returncode=0, stdout="\n"))

        assert resolve_github_token(env={}, runner=runner) is None


class TestConfigManager:
    """Test config discovery, merging and RunConfig building."""

    def setup_method(self):
        self.manager = ConfigManager()

    def test_deep_merge(self):
        default = {"github": {"timeout_seconds": 30, "network_retries": 2}, "output": {"format": "rich"}}
        user = {"github": {"timeout_seconds": 10}}

        merged = self.manager.deep_merge(default, user)

        assert merged == {"github": {"timeout_seconds": 10, "network_retries": 2}, "output": {"format": "rich"}}
        assert default["github"]["timeout_seconds"] == 30

    def test_package_default(self):
        config = self.manager.load_package_default_config()

        assert config["enrichment"]["concurrency"] == 8
        assert config["output"]["format"] == "rich"

    def test_discovers_config_in_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / USER_CONFIG_FILENAME).write_text("enrichment:\n  concurrency: 3\n")
        monkeypatch.chdir(tmp_path)

        config = self.manager.discover_and_load_config(None)

        assert config["enrichment"]["concurrency"] == 3
        assert config["github"]["timeout_seconds"] == 30

    def test_explicit_config_path(self, tmp_path):
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("output:\n  format: json\n")

        config = self.manager.discover_and_load_config(str(config_file))

        assert config["output"]["format"] == "json"

    def test_missing_explicit_config(self, tmp_path):
        with pytest.raises(ConfigError, match="Config file not found"):
            self.manager.discover_and_load_config(str(tmp_path / "nope.yaml"))

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("github: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            self.manager.discover_and_load_config(str(config_file))

    def test_non_mapping_config(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            self.manager.load_config(str(config_file))

    def test_cli_arguments_override_config(self):
        config = self.manager.load_package_default_config()

        merged = self.manager.merge_config_and_args(config, output="json", concurrency=2, timeout=4.5, show_all=True)

        assert merged["output"]["format"] == "json"
        assert merged["output"]["show_all"] is True
        assert merged["enrichment"]["concurrency"] == 2
        assert merged["github"]["timeout_seconds"] == 4.5
        assert config["output"]["format"] == "rich"

    def test_build_run_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        run_config = self.manager.build_run_config(
            manifest_path="crates/app/Cargo.toml",
            output="json",
            top_level_only=True,
            concurrency=4,
            token_resolver=lambda: "ghp_x",
        )

        assert run_config.manifest_path == Path("crates/app/Cargo.toml")
        assert run_config.output_format is OutputFormat.JSON
        assert run_config.top_level_only is True
        assert run_config.concurrency == 4
        assert run_config.timeout_seconds == 30.0
        assert run_config.token == "ghp_x"
        assert run_config.authenticated
        assert run_config.settings["github"]["rate_limit_max_tries"] == 4

    def test_build_run_config_rejects_invalid_values(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigError, match="enrichment.concurrency"):
            self.manager.build_run_config(concurrency=0, token_resolver=lambda: None)

    def test_configure_logging_verbose(self):
        self.manager.configure_logging({"logging": {"level": "ERROR"}}, verbose=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_level_from_config(self, tmp_path):
        log_file = tmp_path / "depsponsor.log"

        self.manager.configure_logging({"logging": {"level": "info", "file": str(log_file)}})
        logging.getLogger("depsponsor.test").info("hello")

        assert logging.getLogger().level == logging.INFO
        assert "hello" in log_file.read_text()

    def teardown_method(self):
        for handler in logging.getLogger().handlers[:]:
            if isinstance(handler, logging.FileHandler):
                logging.getLogger().removeHandler(handler)
                handler.close()
