"""
Sponsor command implementation.

Thin wrapper around SponsorService that handles CLI argument parsing
and delegates business logic to the service layer.
"""
import sys
from typing import Optional

import typer

from depsponsor.core.sponsor_service import SponsorService
from depsponsor.models import OutputFormat


def sponsor_command(
    manifest_path: str = typer.Option(".", "--manifest-path", "-m", help="Path to Cargo.toml or the directory holding it"),
    output: Optional[OutputFormat] = typer.Option(None, "-o", "--output", case_sensitive=False, help="Output format"),
    top_level_only: bool = typer.Option(False, "--top-level-only", help="Only check direct dependencies of workspace members"),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", min=1, help="Maximum parallel GitHub lookups (default 8)"),
    show_all: bool = typer.Option(False, "--all", help="Show every dependency, including ones without funding and failed lookups"),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="Per-request timeout in seconds"),
    config_path: Optional[str] = typer.Option(None, "-c", "--config", help="Path to config YAML"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
):
    """List dependencies that accept sponsorship through GitHub."""

    sponsor_service = SponsorService()
    exit_code, _ = sponsor_service.execute_sponsor(
        manifest_path=manifest_path,
        config_path=config_path,
        output=output.value if output is not None else None,
        top_level_only=top_level_only,
        concurrency=concurrency,
        timeout=timeout,
        show_all=show_all,
        verbose=verbose,
    )

    if exit_code != 0:
        sys.exit(exit_code)
