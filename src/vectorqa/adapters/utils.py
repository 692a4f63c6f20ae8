"""Shared utilities for adapter implementations."""

import os
from typing import Any, Optional

import requests


def create_session_with_pooling(
    pool_connections: int = 10,
    pool_maxsize: int = 20,
    max_retries: int = 3,
) -> requests.Session:
    """Create a requests Session with connection pooling.

    Args:
        pool_connections: Number of connection pools to cache.
        pool_maxsize: Maximum number of connections to save per pool.
        max_retries: Maximum number of retries per connection.

    Returns:
        Configured requests Session.
    """
    session = requests.Session()
    adapter = requests.adapters.HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=max_retries,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def openai_client_kwargs(kwargs: dict[str, Any]) -> dict[str, Optional[str]]:
    """Pop OpenAI client settings out of adapter kwargs.

    Falls back to OPENAI_API_KEY when no key is configured.
    """
    return {
        "api_key": kwargs.pop("api_key", None) or os.environ.get("OPENAI_API_KEY"),
        "base_url": kwargs.pop("base_url", None),
    }
