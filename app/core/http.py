"""HTTP client factory for external API calls.

Provides per-service HTTP clients with connection pooling, timeouts,
and proper resource management.
"""

import httpx

# Default timeout configuration (seconds)
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 10.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_POOL_TIMEOUT = 5.0

DEFAULT_SHOPIFY_TIMEOUT = 5.0

# Module-level client storage for singleton pattern
_shopify_client: httpx.AsyncClient | None = None


def create_http_client(
    base_url: str = "",
    max_connections: int = 20,
    max_keepalive_connections: int = 10,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: float = DEFAULT_READ_TIMEOUT,
    write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    pool_timeout: float = DEFAULT_POOL_TIMEOUT,
) -> httpx.AsyncClient:
    """Create a configured async HTTP client.

    Args:
        base_url: Base URL for all requests (empty string for none)
        max_connections: Maximum number of concurrent connections
        max_keepalive_connections: Maximum idle connections to keep alive
        connect_timeout: Timeout for establishing connection
        read_timeout: Timeout for reading response
        write_timeout: Timeout for sending request
        pool_timeout: Timeout for acquiring connection from pool

    Returns:
        Configured httpx.AsyncClient instance
    """
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=write_timeout,
            pool=pool_timeout,
        ),
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        ),
    )


def get_shopify_client(
    timeout_seconds: float = DEFAULT_SHOPIFY_TIMEOUT,
) -> httpx.AsyncClient:
    """Get singleton HTTP client for the Shopify Admin and Storefront APIs.

    Every phase of a request (connect, read, write, pool) is capped by
    timeout_seconds. The timeout is fixed by the first call. The client
    should be closed via close_shopify_client() during application shutdown.

    Args:
        timeout_seconds: Per-phase timeout for Shopify calls

    Returns:
        Configured httpx.AsyncClient instance for Shopify API calls
    """
    global _shopify_client
    if _shopify_client is None:
        _shopify_client = create_http_client(
            max_connections=50,
            max_keepalive_connections=10,
            connect_timeout=timeout_seconds,
            read_timeout=timeout_seconds,
            write_timeout=timeout_seconds,
            pool_timeout=timeout_seconds,
        )
    return _shopify_client


async def close_shopify_client() -> None:
    """Close the Shopify HTTP client and release resources."""
    global _shopify_client
    if _shopify_client is not None:
        await _shopify_client.aclose()
        _shopify_client = None
