"""
Sponsor service implementation for depsponsor.

"""
import logging
from typing import Callable, Optional, TextIO, Tuple

from depsponsor.constants import MISSING_TOKEN_NOTE, ExitCodes
from depsponsor.core.config_manager import ConfigManager
from depsponsor.enhancers.formatters import ResultRenderer
from depsponsor.enhancers.github_provider import SponsorLookupClient
from depsponsor.enhancers.orchestrator import EnrichmentCoordinator
from depsponsor.extractors.base import BaseDependencyLister
from depsponsor.extractors.cargo import CargoMetadataLister
from depsponsor.models import EnrichmentResult, FailureReason, OutputFormat, RunConfig
from depsponsor.rich_utils.ui_helpers import get_console, show_progress_enabled
from depsponsor.utils.exceptions import ConfigError, ManifestError

logger = logging.getLogger(__name__)


def default_client_factory(run_config: RunConfig) -> SponsorLookupClient:
    return SponsorLookupClient(
        run_config.settings,
        token=run_config.token,
        timeout=run_config.timeout_seconds,
    )


def default_lister_factory(run_config: RunConfig) -> BaseDependencyLister:
    cargo_config = run_config.settings.get("cargo", {})
    return CargoMetadataLister(
        cargo_command=cargo_config.get("command", "cargo"),
        timeout=cargo_config.get("timeout_seconds", 300),
    )


def all_lookups_rejected(result: EnrichmentResult) -> bool:
    """True when every attempted lookup failed on authentication."""
    attempted = [
        entry for entry in result.entries
        if entry.info.reason is not FailureReason.UNRESOLVED_REPO
    ]
    return bool(attempted) and all(
        entry.info.reason is FailureReason.AUTH_ERROR for entry in attempted
    )


class SponsorService:
    """Runs a complete sponsor lookup: list, enrich, render."""

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        lister_factory: Callable[[RunConfig], BaseDependencyLister] = default_lister_factory,
        client_factory: Callable[[RunConfig], object] = default_client_factory,
        console=None,
        error_console=None,
        stream: Optional[TextIO] = None,
    ):
        self.config_manager = config_manager or ConfigManager()
        self.lister_factory = lister_factory
        self.client_factory = client_factory
        self.console = console or get_console()
        self.error_console = error_console or get_console(stderr=True)
        self.stream = stream

    def execute_sponsor(
        self,
        manifest_path: str = ".",
        config_path: Optional[str] = None,
        output: Optional[str] = None,
        top_level_only: bool = False,
        concurrency: Optional[int] = None,
        timeout: Optional[float] = None,
        show_all: bool = False,
        verbose: bool = False,
    ) -> Tuple[int, Optional[EnrichmentResult]]:
        """Execute the complete workflow and return (exit_code, result)."""
        try:
            run_config = self.config_manager.build_run_config(
                manifest_path=manifest_path,
                config_path=config_path,
                output=output,
                top_level_only=top_level_only,
                concurrency=concurrency,
                timeout=timeout,
                show_all=show_all,
            )
        except ConfigError as e:
            self.error_console.print(f"[bold red]Error:[/bold red] {e}")
            return ExitCodes.FILE_ERROR, None

        self.config_manager.configure_logging(run_config.settings, verbose=verbose)

        try:
            return self.run(run_config)
        except KeyboardInterrupt:
            # In-flight lookups are abandoned and nothing is printed
            self.error_console.print("Interrupted.")
            return ExitCodes.INTERRUPTED, None

    def run(self, run_config: RunConfig) -> Tuple[int, Optional[EnrichmentResult]]:
        """Run list -> enrich -> render for an already built RunConfig."""
        lister = self.lister_factory(run_config)
        try:
            packages = lister.list_packages(run_config.manifest_path, run_config.top_level_only)
        except ManifestError as e:
            self.error_console.print(f"[bold red]Error:[/bold red] {e}")
            return ExitCodes.FILE_ERROR, None

        if not run_config.authenticated:
            self.error_console.print(MISSING_TOKEN_NOTE)
            self.error_console.print()

        client = self.client_factory(run_config)
        coordinator = EnrichmentCoordinator(
            client,
            console=self.error_console,
            show_progress=run_config.output_format is OutputFormat.RICH and show_progress_enabled(),
        )
        result = coordinator.enrich(packages, run_config)

        if hasattr(client, "get_statistics"):
            logger.info(f"GitHub client statistics: {client.get_statistics()}")

        if all_lookups_rejected(result):
            self.error_console.print(
                "[bold red]Error:[/bold red] GitHub rejected every lookup. "
                "Check GITHUB_TOKEN or run 'gh auth login'."
            )
            return ExitCodes.AUTH_ERROR, result

        renderer = ResultRenderer(
            console=self.console,
            output_format=run_config.output_format,
            show_all=run_config.show_all,
            unique_repositories=run_config.settings.get("output", {}).get("unique_repositories", True),
            stream=self.stream,
        )
        renderer.render(result)
        return ExitCodes.SUCCESS, result
