"""
Reusable decorator for handling external API exceptions.

Wraps GitHub request methods so that requests-level failures come out as the
ExternalAPIError hierarchy, with HTTP status codes and rate-limit headers
already classified.
"""

import functools
import logging
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Mapping, Optional

import requests

from .exceptions import (
    APIAuthenticationError,
    APIConnectionError,
    APINotFoundError,
    APIRateLimitError,
    APIServerError,
    APITimeoutError,
    ExternalAPIError,
    RestrictedEnvironmentError,
)


def handle_external_api_errors(service: str, log_stats: bool = True):
    """
    Decorator that translates requests exceptions into ExternalAPIError subclasses.

    Usage:
        @handle_external_api_errors(service="GitHub GraphQL")
        def _post_query(self, owner, repo):
            response = self.session.post(url, json=payload)
            response.raise_for_status()
            return response.json()

    Args:
        service: Name of the external service (e.g., "GitHub GraphQL")
        log_stats: Whether to count the failure through self._count("errors")

    Returns:
        Decorated function that raises the translated exception
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            logger = getattr(self, "logger", logging.getLogger(func.__name__))
            context = _extract_context(args, kwargs)
            endpoint = kwargs.get("url", None)
            count = getattr(self, "_count", None) if log_stats else None

            try:
                return func(self, *args, **kwargs)

            except ExternalAPIError as e:
                # Already classified inside the wrapped method
                error, log_level = e, "debug"

            except requests.exceptions.Timeout as e:
                error = APITimeoutError(
                    message=f"Timeout while calling {service}",
                    service=service,
                    endpoint=endpoint,
                    timeout_duration=getattr(self, "timeout", None),
                    original_exception=e,
                )
                log_level = "debug"

            except requests.exceptions.ConnectionError as e:
                error = RestrictedEnvironmentError.from_connection_error(
                    e, service=service, endpoint=endpoint
                ) or APIConnectionError(
                    message=f"Connection failed for {service}",
                    service=service,
                    endpoint=endpoint,
                    original_exception=e,
                )
                log_level = "debug"

            except requests.exceptions.HTTPError as e:
                error, log_level = _create_http_exception(e, service, endpoint, context)

            except requests.exceptions.RequestException as e:
                error = ExternalAPIError(
                    message=f"Request failed for {service}",
                    service=service,
                    endpoint=endpoint,
                    original_exception=e,
                    suggested_action="Check network connectivity and retry",
                )
                log_level = "warning"

            except ValueError as e:
                # Undecodable JSON body
                error = ExternalAPIError(
                    message=f"Invalid response from {service}",
                    service=service,
                    endpoint=endpoint,
                    original_exception=e,
                )
                log_level = "warning"

            _handle_error(
                error=error,
                logger=logger,
                log_level=log_level,
                count=count,
                context=context,
            )

        return wrapper

    return decorator


def _create_http_exception(
    http_error: requests.exceptions.HTTPError,
    service: str,
    endpoint: Optional[str],
    context: str,
) -> tuple:
    """
    Map an HTTP error to a specific exception and log level.

    Returns:
        Tuple of (exception, log_level)
    """
    response = http_error.response
    status_code = response.status_code if response is not None else None
    headers = response.headers if response is not None else {}
    endpoint = endpoint or (response.url if response is not None else None)

    if status_code == 404:
        return (
            APINotFoundError(
                message=f"Resource not found in {service}",
                service=service,
                endpoint=endpoint,
                resource=context,
                original_exception=http_error,
            ),
            "debug",
        )

    if status_code == 429 or (status_code == 403 and is_rate_limit_response(response)):
        return (
            APIRateLimitError(
                message=f"Rate limit exceeded for {service}",
                service=service,
                endpoint=endpoint,
                retry_after=parse_retry_after(headers),
                original_exception=http_error,
            ),
            "debug",
        )

    if status_code in (401, 403):
        return (
            APIAuthenticationError(
                message=f"{service} rejected the credential",
                service=service,
                endpoint=endpoint,
                status_code=status_code,
                original_exception=http_error,
            ),
            "warning",
        )

    if status_code and 500 <= status_code < 600:
        return (
            APIServerError(
                message=f"{service} server error",
                service=service,
                endpoint=endpoint,
                status_code=status_code,
                original_exception=http_error,
            ),
            "debug",
        )

    return (
        ExternalAPIError(
            message=f"HTTP error calling {service}",
            service=service,
            endpoint=endpoint,
            original_exception=http_error,
            suggested_action=(
                f"HTTP {status_code} - Check API status or try again later"
                if status_code
                else "Check API status or try again later"
            ),
        ),
        "warning",
    )


def is_rate_limit_response(response: Optional[requests.Response]) -> bool:
    """Detect GitHub's secondary rate limit, which arrives as a 403."""
    if response is None:
        return False
    headers = response.headers or {}
    if headers.get("Retry-After") is not None:
        return True
    if str(headers.get("X-RateLimit-Remaining", "")).strip() == "0":
        return True
    try:
        body = response.text or ""
    except Exception:
        body = ""
    return "rate limit" in body.lower()


def parse_retry_after(headers: Optional[Mapping[str, str]], now: Optional[float] = None) -> Optional[float]:
    """
    Seconds to wait according to Retry-After or X-RateLimit-Reset.

    Retry-After may be delta-seconds or an HTTP-date. X-RateLimit-Reset is an
    epoch timestamp and only counts when the remaining quota is zero.
    """
    if not headers:
        return None
    now = time.time() if now is None else now

    raw = headers.get("Retry-After")
    if raw is not None:
        raw = str(raw).strip()
        try:
            return max(0.0, float(raw))
        except ValueError:
            pass
        try:
            retry_at = parsedate_to_datetime(raw)
        except (TypeError, ValueError):
            retry_at = None
        if retry_at is not None:
            if retry_at.tzinfo is None:
                retry_at = retry_at.replace(tzinfo=timezone.utc)
            now_dt = datetime.fromtimestamp(now, tz=timezone.utc)
            return max(0.0, (retry_at - now_dt).total_seconds())

    remaining = headers.get("X-RateLimit-Remaining")
    reset = headers.get("X-RateLimit-Reset")
    if remaining is not None and str(remaining).strip() == "0" and reset is not None:
        try:
            return max(0.0, float(reset) - now)
        except ValueError:
            return None

    return None


def _extract_context(args: tuple, kwargs: dict) -> str:
    """
    Build a context string (e.g. "owner/repo") from the wrapped call's arguments.
    """
    owner = kwargs.get("owner") or (args[0] if len(args) > 0 else None)
    repo = kwargs.get("repo") or (args[1] if len(args) > 1 else None)

    if isinstance(owner, str) and isinstance(repo, str):
        return f"{owner}/{repo}"
    elif isinstance(owner, str):
        return owner
    return ""


def _handle_error(
    error: Exception,
    logger: logging.Logger,
    log_level: str,
    count: Optional[Callable[[str], None]],
    context: str,
):
    """
    Log the error, count it, then raise it.
    """
    log_message = str(error)
    if context:
        log_message = f"[{context}] {log_message}"

    if log_level == "debug":
        logger.debug(log_message)
    elif log_level == "warning":
        logger.warning(log_message)
    else:
        logger.error(log_message)

    if count is not None:
        count("errors")

    raise error


__all__ = ["handle_external_api_errors", "is_rate_limit_response", "parse_retry_after"]
