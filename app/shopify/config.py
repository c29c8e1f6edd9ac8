"""Validated Shopify connection settings.

Built once at startup from Settings and handed to the GraphQL client;
nothing in the gateway reads the environment.
"""

import re
from dataclasses import dataclass

from app.core.settings import Settings

_DOMAIN_RE = re.compile(r"^[a-z0-9][a-z0-9-]*(\.[a-z0-9-]+)+$")
_API_VERSION_RE = re.compile(r"^(\d{4}-\d{2}|unstable)$")


def normalize_store_domain(raw: str) -> str:
    """Reduce "https://My-Shop.myshopify.com/" to "my-shop.myshopify.com".

    Raises:
        ValueError: If the result is not a plausible host name
    """
    domain = raw.strip().lower()
    domain = re.sub(r"^https?://", "", domain)
    domain = domain.rstrip("/")
    if not _DOMAIN_RE.match(domain):
        raise ValueError(f"Invalid SHOPIFY_STORE_DOMAIN: {raw!r}")
    return domain


@dataclass(frozen=True)
class ShopifyConfig:
    store_domain: str | None
    admin_access_token: str | None
    storefront_access_token: str | None
    api_version: str
    timeout_seconds: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "ShopifyConfig":
        """Validate Shopify settings.

        A missing domain or token is allowed (the matching API then reports
        UpstreamNotConfiguredError at call time); a malformed one is not.

        Raises:
            ValueError: If the domain or API version is malformed
        """
        domain = None
        if settings.shopify_store_domain:
            domain = normalize_store_domain(settings.shopify_store_domain)

        if not _API_VERSION_RE.match(settings.shopify_api_version):
            raise ValueError(
                f"Invalid SHOPIFY_API_VERSION: {settings.shopify_api_version!r}"
            )

        return cls(
            store_domain=domain,
            admin_access_token=settings.shopify_admin_access_token or None,
            storefront_access_token=settings.shopify_storefront_access_token or None,
            api_version=settings.shopify_api_version,
            timeout_seconds=settings.shopify_timeout_seconds,
        )

    @property
    def admin_configured(self) -> bool:
        return bool(self.store_domain and self.admin_access_token)

    @property
    def storefront_configured(self) -> bool:
        return bool(self.store_domain and self.storefront_access_token)

    @property
    def admin_url(self) -> str:
        return f"https://{self.store_domain}/admin/api/{self.api_version}/graphql.json"

    @property
    def storefront_url(self) -> str:
        return f"https://{self.store_domain}/api/{self.api_version}/graphql.json"
