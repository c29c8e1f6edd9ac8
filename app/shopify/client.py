"""Thin GraphQL transport for the Shopify Admin and Storefront APIs.

Maps every transport-level failure to UpstreamUnavailableError so callers
only ever see one "Shopify could not answer" condition.
"""

import logging
from typing import Any

import httpx

from app.core.http import get_shopify_client
from app.shopify.config import ShopifyConfig
from app.shopify.exceptions import (
    UpstreamNotConfiguredError,
    UpstreamUnavailableError,
)
from app.shopify.schemas import UpstreamApi

logger = logging.getLogger(__name__)


class ShopifyGraphQLClient:
    """Executes GraphQL documents against one store."""

    def __init__(self, config: ShopifyConfig):
        self._config = config

    @property
    def config(self) -> ShopifyConfig:
        return self._config

    async def admin(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run a query against the Admin API with the server-held token.

        Raises:
            UpstreamNotConfiguredError: If the domain or admin token is missing
            UpstreamUnavailableError: If the call fails
        """
        if not self._config.admin_configured:
            raise UpstreamNotConfiguredError("Shopify Admin API is not configured")
        return await self._execute(
            api="admin",
            url=self._config.admin_url,
            headers={"X-Shopify-Access-Token": self._config.admin_access_token or ""},
            query=query,
            variables=variables,
        )

    async def storefront(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run a query against the Storefront API with the public token.

        Raises:
            UpstreamNotConfiguredError: If the domain or storefront token is missing
            UpstreamUnavailableError: If the call fails
        """
        if not self._config.storefront_configured:
            raise UpstreamNotConfiguredError("Shopify Storefront API is not configured")
        return await self._execute(
            api="storefront",
            url=self._config.storefront_url,
            headers={
                "X-Shopify-Storefront-Access-Token": (
                    self._config.storefront_access_token or ""
                )
            },
            query=query,
            variables=variables,
        )

    async def _execute(
        self,
        *,
        api: UpstreamApi,
        url: str,
        headers: dict[str, str],
        query: str,
        variables: dict[str, Any] | None,
    ) -> dict[str, Any]:
        client = get_shopify_client(self._config.timeout_seconds)

        try:
            response = await client.post(
                url,
                json={"query": query, "variables": variables or {}},
                headers={"Content-Type": "application/json", **headers},
            )
        except httpx.TimeoutException as e:
            logger.warning("Shopify %s API timed out", api, extra={"upstream_api": api})
            raise UpstreamUnavailableError(f"Shopify {api} API timed out") from e
        except httpx.RequestError as e:
            logger.warning(
                "Shopify %s API request failed: %s",
                api,
                e.__class__.__name__,
                extra={"upstream_api": api},
            )
            raise UpstreamUnavailableError(f"Shopify {api} API unavailable") from e

        if response.status_code != 200:
            self._handle_error_response(api, response)

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(
                f"Shopify {api} API returned an invalid response"
            ) from e

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            logger.warning(
                "Shopify %s API GraphQL errors: codes=%s",
                api,
                self._error_codes(errors),
                extra={"upstream_api": api},
            )
            raise UpstreamUnavailableError(f"Shopify {api} API query failed")

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise UpstreamUnavailableError(
                f"Shopify {api} API returned an invalid response"
            )
        return data

    @staticmethod
    def _error_codes(errors: Any) -> list[str]:
        """Extract extension codes from a GraphQL errors array for logging."""
        if not isinstance(errors, list):
            return ["UNKNOWN"]
        codes = []
        for error in errors:
            code = None
            if isinstance(error, dict):
                code = (error.get("extensions") or {}).get("code")
            codes.append(str(code) if code else "UNKNOWN")
        return codes

    @staticmethod
    def _handle_error_response(api: UpstreamApi, response: httpx.Response) -> None:
        """Raise for a non-200 Shopify response."""
        status = response.status_code
        logger.warning(
            "Shopify %s API error: status=%s",
            api,
            status,
            extra={"upstream_api": api, "status_code": status},
        )

        if status in {401, 403}:
            raise UpstreamUnavailableError(
                f"Shopify {api} API rejected the access token"
            )
        if status == 429:
            raise UpstreamUnavailableError(f"Shopify {api} API rate limit exceeded")
        raise UpstreamUnavailableError(f"Shopify {api} API returned HTTP {status}")
