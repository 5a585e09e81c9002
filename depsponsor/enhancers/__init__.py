"""
Enhancer layer for depsponsor - sponsorship enrichment of dependency data.

- SponsorLookupClient: funding links and sponsor counts from GitHub
- EnrichmentCoordinator: bounded-concurrency fan-out over the dependency set
- ResultRenderer: rich table or JSON output of the enriched entries
"""

from .orchestrator import EnrichmentCoordinator
from .formatters import ResultRenderer, select_entries
from .github_provider import SponsorLookupClient, parse_github_repository, resolve_repository
from .funding import parse_funding_file
from .mixins import CacheableMixin
from .utils import create_http_session

__all__ = [
    "EnrichmentCoordinator",
    "ResultRenderer",
    "select_entries",
    "SponsorLookupClient",
    "parse_github_repository",
    "resolve_repository",
    "parse_funding_file",
    "CacheableMixin",
    "create_http_session",
]
