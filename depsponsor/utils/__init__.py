"""
Utility modules for depsponsor.

Shared exception classes and the decorator that maps HTTP failures onto them.
"""

from depsponsor.utils.api_error_handler import handle_external_api_errors
from depsponsor.utils.exceptions import (
    APIAuthenticationError,
    APIConnectionError,
    APINotFoundError,
    APIRateLimitError,
    APIServerError,
    APITimeoutError,
    ConfigError,
    ExternalAPIError,
    ManifestError,
    RestrictedEnvironmentError,
)

__all__ = [
    "handle_external_api_errors",
    "ExternalAPIError",
    "APITimeoutError",
    "APIConnectionError",
    "RestrictedEnvironmentError",
    "APIAuthenticationError",
    "APIRateLimitError",
    "APINotFoundError",
    "APIServerError",
    "ManifestError",
    "ConfigError",
]
