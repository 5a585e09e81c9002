"""
Utility functions for enhancer providers.

This module provides shared utility functions to avoid code duplication.
"""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


def create_http_session(
    user_agent: str,
    max_retries: int = 0,
    pool_size: int = 10,
) -> requests.Session:
    """
    Create a configured HTTP session with connection pooling and standard headers.

    Retries for rate limits and transient failures are handled by the caller's
    backoff policy, so the transport-level retry count defaults to zero.

    Args:
        user_agent: User-Agent string for the session
        max_retries: Transport-level retries for connection failures
        pool_size: Connections kept per host; match the worker count

    Returns:
        Configured requests.Session instance
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=max_retries,
        connect=max_retries,
        read=0,
        status=0,
        raise_on_status=False,
    )

    adapter = HTTPAdapter(
        pool_connections=pool_size,
        pool_maxsize=pool_size,
        max_retries=retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({"User-Agent": user_agent})

    return session
