"""
Data models for dependency sponsorship enrichment.

Dataclass-based models shared by the dependency lister, the sponsor lookup
client, the enrichment coordinator and the renderers.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


class OutputFormat(str, Enum):
    """Output format selector"""
    RICH = "rich"
    JSON = "json"


class LookupStatus(Enum):
    """Terminal status of a single sponsor lookup"""
    FOUND = "found"
    NOT_FOUND = "not-found"
    LOOKUP_FAILED = "lookup-failed"


class FailureReason(Enum):
    """Why a lookup ended in LOOKUP_FAILED"""
    UNRESOLVED_REPO = "unresolved_repo"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    AUTH_ERROR = "auth_error"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class PackageRef:
    """A resolved dependency as listed by the package manager"""
    name: str
    version: str
    repository: Optional[str] = None
    homepage: Optional[str] = None


@dataclass(frozen=True)
class SponsorInfo:
    """Result of a sponsor lookup for one repository."""
    status: LookupStatus
    reason: Optional[FailureReason] = None
    sponsor_links: Tuple[str, ...] = ()
    sponsor_count: Optional[int] = None
    repository: Optional[str] = None
    detail: Optional[str] = None

    def __post_init__(self):
        if (self.status is LookupStatus.LOOKUP_FAILED) != (self.reason is not None):
            raise ValueError("reason must be set exactly when status is lookup-failed")
        if self.sponsor_count is not None and self.sponsor_count < 0:
            raise ValueError(f"sponsor_count must be non-negative, got {self.sponsor_count}")

    @property
    def url(self) -> Optional[str]:
        return self.sponsor_links[0] if self.sponsor_links else None

    @classmethod
    def found(
        cls,
        sponsor_links: List[str],
        sponsor_count: Optional[int] = None,
        repository: Optional[str] = None,
    ) -> "SponsorInfo":
        return cls(
            status=LookupStatus.FOUND,
            sponsor_links=tuple(sponsor_links),
            sponsor_count=sponsor_count,
            repository=repository,
        )

    @classmethod
    def not_found(cls, repository: Optional[str] = None) -> "SponsorInfo":
        return cls(status=LookupStatus.NOT_FOUND, repository=repository)

    @classmethod
    def failed(
        cls,
        reason: FailureReason,
        detail: Optional[str] = None,
        repository: Optional[str] = None,
    ) -> "SponsorInfo":
        return cls(
            status=LookupStatus.LOOKUP_FAILED,
            reason=reason,
            repository=repository,
            detail=detail,
        )


@dataclass(frozen=True)
class EnrichedEntry:
    """A package paired with the outcome of its sponsor lookup"""
    package: PackageRef
    info: SponsorInfo

    @property
    def is_sponsorable(self) -> bool:
        return self.info.status is LookupStatus.FOUND and self.info.url is not None

    @property
    def failed(self) -> bool:
        return self.info.status is LookupStatus.LOOKUP_FAILED

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to a JSON-serializable record."""
        return {
            "name": self.package.name,
            "version": self.package.version,
            "repository": self.package.repository,
            "sponsor_links": list(self.info.sponsor_links),
            "sponsor_count": self.info.sponsor_count,
            "status": self.info.status.value,
            "reason": self.info.reason.value if self.info.reason else None,
        }


@dataclass
class EnrichmentResult:
    """Ordered outcome of an enrichment run"""
    entries: List[EnrichedEntry] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return sum(1 for entry in self.entries if entry.failed)

    def failure_breakdown(self) -> Dict[str, int]:
        counts = Counter(
            entry.info.reason.value for entry in self.entries if entry.failed
        )
        return dict(counts)

    def sponsorable(self) -> List[EnrichedEntry]:
        return [entry for entry in self.entries if entry.is_sponsorable]


@dataclass(frozen=True)
class RunConfig:
    """Immutable configuration for a single invocation"""
    manifest_path: Path
    output_format: OutputFormat = OutputFormat.RICH
    top_level_only: bool = False
    token: Optional[str] = field(default=None, repr=False)
    concurrency: int = 8
    show_all: bool = False
    timeout_seconds: float = 30
    settings: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def authenticated(self) -> bool:
        return bool(self.token)
