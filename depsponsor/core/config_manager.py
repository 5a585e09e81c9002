"""
Configuration management for depsponsor.

Handles loading, merging and discovery of configuration files, resolution of
the GitHub credential, and construction of the immutable RunConfig.
"""
import copy
import importlib.resources as importlib_resources
import logging
import os
import subprocess
from pathlib import Path
from typing import Callable, Mapping, Optional

import yaml

from depsponsor.config_validator import ConfigValidator
from depsponsor.models import OutputFormat, RunConfig
from depsponsor.utils.exceptions import ConfigError

logger = logging.getLogger(__name__)

USER_CONFIG_FILENAME = "depsponsor.config.yaml"


def resolve_github_token(
    env: Optional[Mapping[str, str]] = None,
    runner: Callable = subprocess.run,
) -> Optional[str]:
    """
    Find a GitHub token, once, at startup.

    GITHUB_TOKEN wins; when it is unset or blank the GitHub CLI is asked via
    ``gh auth token``. Returns None when neither yields a token.
    """
    env = os.environ if env is None else env

    token = (env.get("GITHUB_TOKEN") or "").strip()
    if token:
        logger.debug("Using GitHub token from GITHUB_TOKEN")
        return token

    try:
        result = runner(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as e:
        logger.debug(f"GitHub CLI token unavailable: {e}")
        return None

    if result.returncode != 0:
        logger.debug("GitHub CLI is not authenticated")
        return None

    token = (result.stdout or "").strip()
    if token:
        logger.debug("Using GitHub token from the GitHub CLI")
    return token or None


class ConfigManager:
    """Manages depsponsor configuration loading and merging operations."""

    def __init__(self, validator: Optional[ConfigValidator] = None):
        self.validator = validator or ConfigValidator()

    def load_config(self, path: str) -> dict:
        """Load configuration from YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    def deep_merge(self, default: dict, user: dict) -> dict:
        """Deep merge user config into default config."""
        result = copy.deepcopy(default)
        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self.deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def load_package_default_config(self) -> dict:
        """Load default config shipped with the package."""
        default_config_path = importlib_resources.files("depsponsor.config") / "default.yaml"
        with default_config_path.open("r") as f:
            return yaml.safe_load(f)

    def load_and_merge_config(self, user_config_path: str) -> dict:
        """Load user config and merge with package default."""
        default_config = self.load_package_default_config()
        user_config = self.load_config(user_config_path)
        return self.deep_merge(default_config, user_config)

    def discover_and_load_config(self, config_arg: Optional[str]) -> dict:
        """Discover config file with priority order."""

        # Priority 1: --config argument
        if config_arg:
            if os.path.exists(config_arg):
                return self.load_and_merge_config(config_arg)
            raise ConfigError(f"Config file not found: {config_arg}")

        # Priority 2: depsponsor.config.yaml in current directory
        if os.path.exists(USER_CONFIG_FILENAME):
            return self.load_and_merge_config(USER_CONFIG_FILENAME)

        # Priority 3: Package default config
        return self.load_package_default_config()

    def merge_config_and_args(
        self,
        config: dict,
        output: Optional[str] = None,
        concurrency: Optional[int] = None,
        timeout: Optional[float] = None,
        show_all: Optional[bool] = None,
    ) -> dict:
        """Merge configuration with CLI arguments; None means "not given"."""
        config = copy.deepcopy(config)
        if output is not None:
            config.setdefault("output", {})["format"] = OutputFormat(output).value
        if concurrency is not None:
            config.setdefault("enrichment", {})["concurrency"] = concurrency
        if timeout is not None:
            config.setdefault("github", {})["timeout_seconds"] = timeout
        if show_all:
            config.setdefault("output", {})["show_all"] = True
        return config

    def build_run_config(
        self,
        manifest_path: str = ".",
        config_path: Optional[str] = None,
        output: Optional[str] = None,
        top_level_only: bool = False,
        concurrency: Optional[int] = None,
        timeout: Optional[float] = None,
        show_all: bool = False,
        token_resolver: Callable[[], Optional[str]] = resolve_github_token,
    ) -> RunConfig:
        """
        Build the immutable RunConfig for this invocation.

        Raises:
            ConfigError: If the configuration is missing or invalid
        """
        config = self.discover_and_load_config(config_path)
        config = self.merge_config_and_args(config, output, concurrency, timeout, show_all)

        errors = self.validator.validate_config(config)
        if errors:
            raise ConfigError("Invalid configuration:\n  - " + "\n  - ".join(errors))

        return RunConfig(
            manifest_path=Path(manifest_path),
            output_format=OutputFormat(config["output"]["format"]),
            top_level_only=top_level_only,
            token=token_resolver(),
            concurrency=int(config["enrichment"]["concurrency"]),
            show_all=bool(config["output"].get("show_all", False)),
            timeout_seconds=float(config["github"]["timeout_seconds"]),
            settings=config,
        )

    def configure_logging(self, config: dict, verbose: bool = False) -> None:
        """Configure root logging from the 'logging' section; --verbose forces DEBUG."""
        logging_config = config.get("logging", {})
        level = "DEBUG" if verbose else str(logging_config.get("level", "WARNING")).upper()

        handlers = [logging.StreamHandler()]
        if logging_config.get("file"):
            handlers.append(logging.FileHandler(logging_config["file"]))

        logging.basicConfig(
            level=getattr(logging, level, logging.WARNING),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=handlers,
            force=True,
        )
