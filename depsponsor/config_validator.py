"""Configuration validation for depsponsor."""

from typing import Any, Dict, List

from .models import OutputFormat

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates depsponsor configuration before a run starts."""

    required_sections = ("github", "enrichment", "output", "logging")

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """Validate complete configuration.

        Args:
            config: Merged configuration dictionary

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        for section in self.required_sections:
            if not isinstance(config.get(section), dict):
                errors.append(f"Missing '{section}' section in configuration")
        if errors:
            return errors

        errors.extend(self.validate_github(config["github"]))
        errors.extend(self.validate_enrichment(config["enrichment"]))
        errors.extend(self.validate_output(config["output"]))
        errors.extend(self.validate_logging(config["logging"]))
        return errors

    def validate_github(self, github_config: Dict[str, Any]) -> List[str]:
        errors = []

        for key in ("graphql_url", "raw_content_url"):
            value = github_config.get(key)
            if not isinstance(value, str) or not value.startswith(("http://", "https://")):
                errors.append(f"'github.{key}' must be an http(s) URL")

        timeout = github_config.get("timeout_seconds")
        if not _is_number(timeout) or timeout <= 0:
            errors.append("'github.timeout_seconds' must be a positive number")

        tries = github_config.get("rate_limit_max_tries")
        if not isinstance(tries, int) or isinstance(tries, bool) or tries < 1:
            errors.append("'github.rate_limit_max_tries' must be an integer >= 1")

        retries = github_config.get("network_retries")
        if not isinstance(retries, int) or isinstance(retries, bool) or retries < 0:
            errors.append("'github.network_retries' must be an integer >= 0")

        for key in ("backoff_base_seconds", "backoff_max_seconds"):
            value = github_config.get(key)
            if not _is_number(value) or value < 0:
                errors.append(f"'github.{key}' must be a non-negative number")

        return errors

    def validate_enrichment(self, enrichment_config: Dict[str, Any]) -> List[str]:
        concurrency = enrichment_config.get("concurrency")
        if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
            return ["'enrichment.concurrency' must be an integer >= 1"]
        return []

    def validate_output(self, output_config: Dict[str, Any]) -> List[str]:
        errors = []

        valid_formats = [fmt.value for fmt in OutputFormat]
        if output_config.get("format") not in valid_formats:
            errors.append(f"'output.format' must be one of: {', '.join(valid_formats)}")

        for key in ("show_all", "unique_repositories"):
            if key in output_config and not isinstance(output_config[key], bool):
                errors.append(f"'output.{key}' must be boolean")

        return errors

    def validate_logging(self, logging_config: Dict[str, Any]) -> List[str]:
        errors = []

        level = logging_config.get("level", "WARNING")
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            errors.append(f"'logging.level' must be one of: {', '.join(sorted(LOG_LEVELS))}")

        log_file = logging_config.get("file")
        if log_file is not None and not isinstance(log_file, str):
            errors.append("'logging.file' must be a path or null")

        return errors

