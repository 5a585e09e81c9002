"""
GitHub sponsorship provider.

Looks up the funding links and sponsor count of the GitHub repository behind
a dependency. With a token the GraphQL API is used; without one (or once the
token has been rejected) the repository's FUNDING.yml is read from the raw
content host instead, which gives links but no sponsor count.
"""

import functools
import logging
import re
import threading
from typing import Any, Callable, Dict, Optional, Tuple

import backoff
import requests

from ..models import FailureReason, PackageRef, SponsorInfo
from ..utils.api_error_handler import handle_external_api_errors, parse_retry_after
from ..utils.exceptions import (
    APIAuthenticationError,
    APIConnectionError,
    APINotFoundError,
    APIRateLimitError,
    APIServerError,
    APITimeoutError,
    ExternalAPIError,
    LookupCancelledError,
)
from .funding import parse_funding_file
from .mixins import CacheableMixin
from .utils import create_http_session

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
GITHUB_RAW_CONTENT_URL = "https://raw.githubusercontent.com"
USER_AGENT = "depsponsor"

SPONSOR_QUERY = """
query($owner: String!, $repo: String!) {
    repository(owner: $owner, name: $repo) {
        fundingLinks { url }
        owner {
            ... on User {
                hasSponsorsListing
                sponsors { totalCount }
            }
            ... on Organization {
                hasSponsorsListing
                sponsors { totalCount }
            }
        }
    }
}
"""

_GITHUB_URL_PATTERNS = [
    # https://github.com/o/r, git+https://..., ssh://git@github.com/o/r
    re.compile(
        r"^(?:git\+)?(?:https?|git|ssh)://(?:[^@/]+@)?(?:www\.)?github\.com[/:]([^/]+)/([^/#?]+)",
        re.IGNORECASE,
    ),
    # git@github.com:o/r.git
    re.compile(r"^git@github\.com:([^/]+)/([^/#?]+)", re.IGNORECASE),
    # github.com/o/r
    re.compile(r"^(?:www\.)?github\.com/([^/]+)/([^/#?]+)", re.IGNORECASE),
]

NETWORK_ERRORS = (APITimeoutError, APIConnectionError, APIServerError)


def parse_github_repository(url: Optional[str]) -> Optional[Tuple[str, str]]:
    """Extract (owner, repo) from a GitHub repository URL, or None."""
    if not url:
        return None
    url = url.strip()
    for pattern in _GITHUB_URL_PATTERNS:
        match = pattern.match(url)
        if match:
            owner, repo = match.group(1), match.group(2)
            if repo.lower().endswith(".git"):
                repo = repo[:-4]
            if owner and repo:
                return owner, repo
    return None


def resolve_repository(package: PackageRef) -> Optional[Tuple[str, str]]:
    """Find the GitHub repository of a package from its repository or homepage URL."""
    return parse_github_repository(package.repository) or parse_github_repository(package.homepage)


def retry_after_expo(base: float = 2, factor: float = 1, max_value: Optional[float] = None):
    """Exponential wait generator that defers to a server-provided Retry-After.

    Follows backoff's wait generator protocol: the exception that triggered the
    retry is sent in, the number of seconds to sleep comes out.
    """
    exception = yield
    n = 0
    while True:
        delay = getattr(exception, "retry_after", None)
        if delay is None:
            delay = factor * base ** n
        if max_value is not None:
            delay = min(delay, max_value)
        exception = yield delay
        n += 1


def cancellable_wait(wait_gen: Callable, cancelled: threading.Event, jitter: Optional[Callable] = None) -> Callable:
    """Wrap a backoff wait generator so every wait is spent on an Event.

    backoff sleeps for whatever the generator yields. Waiting on the event here
    and yielding 0 lets a cancel() cut a pending retry wait short. Jitter is
    applied here too, so pass jitter=None to backoff.on_exception.
    """

    def wait(**kwargs):
        delays = wait_gen(**kwargs)
        delays.send(None)
        exception = yield
        while True:
            delay = delays.send(exception)
            if jitter is not None:
                delay = jitter(delay)
            cancelled.wait(delay)
            exception = yield 0

    return wait


class SponsorLookupClient(CacheableMixin):
    """
    Sponsor lookup client for the GitHub API.

    lookup() never raises: every outcome, including rate limiting and network
    failures, is reported as a SponsorInfo status. After cancel() no further
    request is sent and pending retry waits end early.
    """

    def __init__(
        self,
        config: Dict,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)

        github_config = config.get("github", {})
        self.token = token or None
        self.graphql_url = github_config.get("graphql_url", GITHUB_GRAPHQL_URL)
        self.raw_content_url = github_config.get("raw_content_url", GITHUB_RAW_CONTENT_URL).rstrip("/")
        self.timeout = float(timeout if timeout is not None else github_config.get("timeout_seconds", 30))

        # Retry policy
        self.rate_limit_max_tries = max(1, int(github_config.get("rate_limit_max_tries", 4)))
        self.network_retries = max(0, int(github_config.get("network_retries", 2)))
        self.backoff_base = float(github_config.get("backoff_base_seconds", 1.0))
        self.backoff_max = float(github_config.get("backoff_max_seconds", 60.0))

        self.session = session or create_http_session(
            user_agent=github_config.get("user_agent", USER_AGENT),
            pool_size=int(config.get("enrichment", {}).get("concurrency", 8)),
        )

        self.stats = {"api_calls": 0, "cache_hits": 0, "errors": 0, "retries": 0}
        self._stats_lock = threading.Lock()
        self._auth_rejected = threading.Event()
        self._auth_lock = threading.Lock()
        self._cancelled = threading.Event()
        self._init_cache()

        self._query_repository = self._with_retries(self._post_sponsor_query)
        self._fetch_funding_file = self._with_retries(self._get_funding_file)

    @property
    def authenticated(self) -> bool:
        return bool(self.token) and not self._auth_rejected.is_set()

    def lookup(self, package: PackageRef) -> SponsorInfo:
        """Look up sponsorship information for a package."""
        if self._cancelled.is_set():
            return SponsorInfo.failed(FailureReason.UNEXPECTED_ERROR, detail="Lookup cancelled")

        resolved = resolve_repository(package)
        if resolved is None:
            self.logger.debug(f"No GitHub repository found for {package.name}")
            return SponsorInfo.failed(
                FailureReason.UNRESOLVED_REPO,
                detail=f"No GitHub repository declared for {package.name}",
            )

        owner, repo = resolved
        cache_key = f"{owner}/{repo}".lower()
        return self._get_or_compute(cache_key, lambda: self._lookup_repository(owner, repo))

    def _lookup_repository(self, owner: str, repo: str) -> SponsorInfo:
        slug = f"{owner}/{repo}"
        try:
            if self.authenticated:
                try:
                    return self._lookup_authenticated(owner, repo)
                except APIAuthenticationError as e:
                    self._reject_credential(e)
            return self._lookup_unauthenticated(owner, repo)

        except APIRateLimitError as e:
            self.logger.warning(f"Rate limited after {self.rate_limit_max_tries} attempts for {slug}")
            return SponsorInfo.failed(FailureReason.RATE_LIMITED, e.message, slug)
        except APIAuthenticationError as e:
            return SponsorInfo.failed(FailureReason.AUTH_ERROR, e.message, slug)
        except LookupCancelledError as e:
            self.logger.debug(f"Lookup for {slug} cancelled")
            return SponsorInfo.failed(FailureReason.UNEXPECTED_ERROR, e.message, slug)
        except NETWORK_ERRORS as e:
            self.logger.warning(f"Failed to fetch sponsor info for {slug}: {e.message}")
            return SponsorInfo.failed(FailureReason.NETWORK_ERROR, e.message, slug)
        except ExternalAPIError as e:
            self.logger.warning(f"Failed to fetch sponsor info for {slug}: {e}")
            return SponsorInfo.failed(FailureReason.UNEXPECTED_ERROR, e.message, slug)

    def _lookup_authenticated(self, owner: str, repo: str) -> SponsorInfo:
        slug = f"{owner}/{repo}"
        payload = self._query_repository(owner, repo)

        repository = (payload.get("data") or {}).get("repository")
        if not repository:
            return SponsorInfo.not_found(slug)

        links = [
            link.get("url")
            for link in repository.get("fundingLinks") or []
            if link and link.get("url")
        ]
        if not links:
            return SponsorInfo.not_found(slug)

        owner_data = repository.get("owner") or {}
        sponsor_count = None
        if owner_data.get("hasSponsorsListing"):
            sponsor_count = (owner_data.get("sponsors") or {}).get("totalCount")

        return SponsorInfo.found(links, sponsor_count, slug)

    def _lookup_unauthenticated(self, owner: str, repo: str) -> SponsorInfo:
        slug = f"{owner}/{repo}"
        text = self._read_funding_file(owner, repo, ".github/FUNDING.yml")
        if text is None:
            # Organization-wide default from the owner's .github repository
            text = self._get_or_compute(
                f"{owner.lower()}/.github#funding",
                lambda: self._read_funding_file(owner, ".github", "FUNDING.yml"),
            )
        if text is None:
            return SponsorInfo.not_found(slug)

        links = parse_funding_file(text)
        if not links:
            return SponsorInfo.not_found(slug)
        return SponsorInfo.found(links, None, slug)

    def _read_funding_file(self, owner: str, repo: str, path: str) -> Optional[str]:
        try:
            return self._fetch_funding_file(owner, repo, path)
        except APINotFoundError:
            return None

    @handle_external_api_errors(service="GitHub GraphQL")
    def _post_sponsor_query(self, owner: str, repo: str) -> Dict[str, Any]:
        self._count("api_calls")
        response = self.session.post(
            self.graphql_url,
            json={"query": SPONSOR_QUERY, "variables": {"owner": owner, "repo": repo}},
            headers={"Authorization": f"Bearer {self.token}"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        self._raise_for_graphql_errors(payload, response)
        return payload

    @handle_external_api_errors(service="GitHub raw content", log_stats=False)
    def _get_funding_file(self, owner: str, repo: str, path: str) -> str:
        self._count("api_calls")
        response = self.session.get(
            f"{self.raw_content_url}/{owner}/{repo}/HEAD/{path}",
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.text

    def _raise_for_graphql_errors(self, payload: Dict[str, Any], response: requests.Response) -> None:
        """GraphQL reports some failures with HTTP 200 and an errors list."""
        errors = payload.get("errors") or []
        if not errors:
            return

        types = {str(error.get("type", "")).upper() for error in errors if isinstance(error, dict)}
        if "RATE_LIMITED" in types:
            raise APIRateLimitError(
                message="GraphQL rate limit exceeded",
                service="GitHub GraphQL",
                endpoint=self.graphql_url,
                retry_after=parse_retry_after(response.headers),
            )

        if types <= {"NOT_FOUND"}:
            return

        if not (payload.get("data") or {}).get("repository"):
            messages = "; ".join(str(error.get("message", "")) for error in errors if isinstance(error, dict))
            raise ExternalAPIError(
                message=f"GraphQL query failed: {messages}",
                service="GitHub GraphQL",
                endpoint=self.graphql_url,
            )

    def _with_retries(self, func: Callable) -> Callable:
        """Wrap func with the rate-limit backoff and the network retry policy."""
        network_retry = backoff.on_exception(
            cancellable_wait(backoff.expo, self._cancelled, jitter=backoff.full_jitter),
            NETWORK_ERRORS,
            max_tries=self.network_retries + 1,
            jitter=None,
            giveup=self._is_cancelled,
            on_backoff=self._on_backoff,
            logger=None,
            factor=self.backoff_base,
            max_value=self.backoff_max,
        )
        rate_limit_retry = backoff.on_exception(
            cancellable_wait(retry_after_expo, self._cancelled),
            APIRateLimitError,
            max_tries=self.rate_limit_max_tries,
            jitter=None,
            giveup=self._is_cancelled,
            on_backoff=self._on_backoff,
            logger=None,
            factor=self.backoff_base,
            max_value=self.backoff_max,
        )

        @functools.wraps(func)
        def send_unless_cancelled(*args, **kwargs):
            if self._cancelled.is_set():
                raise LookupCancelledError(service="GitHub")
            return func(*args, **kwargs)

        return rate_limit_retry(network_retry(send_unless_cancelled))

    def cancel(self) -> None:
        """Stop sending requests and wake up every lookup waiting to retry."""
        self._cancelled.set()

    def _is_cancelled(self, exception: Exception) -> bool:
        return self._cancelled.is_set()

    def _on_backoff(self, details: Dict[str, Any]) -> None:
        self._count("retries")
        exception = details.get("exception")
        self.logger.debug(
            f"{type(exception).__name__} for {'/'.join(map(str, details.get('args', ())[:2]))}, "
            f"retrying (attempt {details.get('tries')})"
        )

    def _reject_credential(self, error: APIAuthenticationError) -> None:
        with self._auth_lock:
            if self._auth_rejected.is_set():
                return
            self._auth_rejected.set()
        self.logger.warning(
            f"GitHub rejected the token ({error.status_code}); continuing without authentication. "
            "Sponsor counts will be unavailable."
        )

    def _count(self, stat: str) -> None:
        with self._stats_lock:
            self.stats[stat] += 1

    def get_statistics(self) -> Dict[str, Any]:
        with self._stats_lock:
            stats = dict(self.stats)
        stats["authenticated"] = self.authenticated
        stats["credential_rejected"] = self._auth_rejected.is_set()
        return stats
