"""
Exception hierarchy for depsponsor.

Two families live here:

- External API errors raised inside the sponsor lookup client while talking
  to GitHub. They carry the service, endpoint and a suggested action, and are
  mapped to a per-entry FailureReason before leaving the client.
- Fatal run errors (manifest and configuration problems) that stop the whole
  run and are turned into an exit code by the service layer.
"""

from typing import Optional


class ExternalAPIError(Exception):
    """
    Base exception for all external API-related errors.

    Used directly for HTTP failures that do not fit a more specific category.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        endpoint: Optional[str] = None,
        original_exception: Optional[Exception] = None,
        suggested_action: Optional[str] = None,
    ):
        """
        Initialize ExternalAPIError.

        Args:
            message: Human-readable error message
            service: Name of the external service (e.g., "GitHub GraphQL")
            endpoint: API endpoint or URL that failed
            original_exception: The original exception that was caught
            suggested_action: Suggested action for the user to resolve the issue
        """
        self.message = message
        self.service = service
        self.endpoint = endpoint
        self.original_exception = original_exception
        self.suggested_action = suggested_action

        error_parts = [message]

        if service:
            error_parts.append(f"Service: {service}")

        if endpoint:
            error_parts.append(f"Endpoint: {endpoint}")

        if suggested_action:
            error_parts.append(f"Action: {suggested_action}")

        if original_exception:
            error_parts.append(f"Original error: {str(original_exception)}")

        super().__init__(" | ".join(error_parts))


class APITimeoutError(ExternalAPIError):
    """Raised when a request exceeds the per-request timeout."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout_duration: Optional[float] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.timeout_duration = timeout_duration

        suggested_action = "Check network connectivity and retry"
        if timeout_duration:
            suggested_action += f" (timeout after {timeout_duration}s)"

        super().__init__(
            message=message,
            service=service,
            endpoint=endpoint,
            original_exception=original_exception,
            suggested_action=suggested_action,
        )


class APIConnectionError(ExternalAPIError):
    """
    Raised when unable to establish a connection to the API.

    This typically indicates:
    - Network connectivity issues
    - DNS resolution failures
    - Service is down or unreachable
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        endpoint: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            service=service,
            endpoint=endpoint,
            original_exception=original_exception,
            suggested_action="Check network connectivity and verify the service is accessible",
        )


class RestrictedEnvironmentError(APIConnectionError):
    """
    Raised when a connection failure looks like a network restriction.

    Corporate proxies and firewalls commonly block api.github.com or
    raw.githubusercontent.com; the suggested action points at the likely
    culprit instead of a generic connectivity hint.
    """

    ACTIONS = {
        "dns": "DNS resolution failed. Check that GitHub hosts resolve from this machine",
        "proxy": "Proxy connection failed. Check HTTPS_PROXY settings",
        "firewall": "Connection refused. Check firewall rules for GitHub hosts",
    }

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        endpoint: Optional[str] = None,
        original_exception: Optional[Exception] = None,
        restriction_type: Optional[str] = None,
    ):
        self.restriction_type = restriction_type

        super().__init__(
            message=message,
            service=service,
            endpoint=endpoint,
            original_exception=original_exception,
        )

        self.suggested_action = self.ACTIONS.get(
            restriction_type,
            "Network connection failed. A proxy or firewall may be blocking GitHub",
        )

    @classmethod
    def from_connection_error(
        cls,
        connection_error: Exception,
        service: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> Optional["RestrictedEnvironmentError"]:
        """
        Classify a connection error by its message.

        Returns:
            RestrictedEnvironmentError when a restriction pattern is recognized,
            None otherwise
        """
        error_msg = str(connection_error).lower()

        if any(
            pattern in error_msg
            for pattern in [
                "name resolution",
                "nodename nor servname provided",
                "getaddrinfo failed",
                "name or service not known",
            ]
        ):
            restriction_type, message = "dns", "DNS resolution failed"
        elif any(
            pattern in error_msg
            for pattern in ["proxy", "407 proxy authentication", "tunnel connection failed"]
        ):
            restriction_type, message = "proxy", "Proxy connection failed"
        elif "connection refused" in error_msg or "errno 111" in error_msg:
            restriction_type, message = "firewall", "Connection refused"
        else:
            return None

        return cls(
            message=message,
            service=service,
            endpoint=endpoint,
            original_exception=connection_error,
            restriction_type=restriction_type,
        )


class APIAuthenticationError(ExternalAPIError):
    """
    Raised when the credential is rejected (401, or 403 without rate-limit signals).
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.status_code = status_code

        if status_code == 401:
            suggested_action = "Verify GITHUB_TOKEN is valid and not expired"
        elif status_code == 403:
            suggested_action = "Verify the token has permission to read public repositories"
        else:
            suggested_action = "Check authentication credentials and permissions"

        super().__init__(
            message=message,
            service=service,
            endpoint=endpoint,
            original_exception=original_exception,
            suggested_action=suggested_action,
        )


class APIRateLimitError(ExternalAPIError):
    """
    Raised when GitHub signals a primary or secondary rate limit.

    retry_after holds the server-provided wait in seconds, when there is one.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        endpoint: Optional[str] = None,
        retry_after: Optional[float] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.retry_after = retry_after

        suggested_action = "Wait before retrying"
        if retry_after is not None:
            suggested_action += f" (retry after {retry_after:g}s)"
        else:
            suggested_action += " or lower --concurrency"

        super().__init__(
            message=message,
            service=service,
            endpoint=endpoint,
            original_exception=original_exception,
            suggested_action=suggested_action,
        )


class APINotFoundError(ExternalAPIError):
    """Raised when the requested resource does not exist (404)."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        endpoint: Optional[str] = None,
        resource: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.resource = resource

        super().__init__(
            message=message,
            service=service,
            endpoint=endpoint,
            original_exception=original_exception,
            suggested_action="Verify the repository exists and is public",
        )


class APIServerError(ExternalAPIError):
    """Raised when the API returns a server error (5xx)."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.status_code = status_code

        super().__init__(
            message=message,
            service=service,
            endpoint=endpoint,
            original_exception=original_exception,
            suggested_action="Service is experiencing issues. Wait and retry, or check githubstatus.com",
        )


class LookupCancelledError(ExternalAPIError):
    """Raised in place of a request once the lookup client has been cancelled."""

    def __init__(self, service: Optional[str] = None):
        super().__init__(message="Lookup cancelled", service=service)


class ManifestError(Exception):
    """Raised when the dependency manifest cannot be located, resolved or parsed."""

    def __init__(self, message: str, manifest_path: Optional[str] = None):
        self.manifest_path = manifest_path
        if manifest_path:
            message = f"{message} ({manifest_path})"
        super().__init__(message)


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""
    pass


__all__ = [
    "ExternalAPIError",
    "APITimeoutError",
    "APIConnectionError",
    "RestrictedEnvironmentError",
    "APIAuthenticationError",
    "APIRateLimitError",
    "APINotFoundError",
    "APIServerError",
    "LookupCancelledError",
    "ManifestError",
    "ConfigError",
]
