"""Identity reconciliation between the local User and the Shopify customer.

The local users row is the identity of record. The Shopify customer is a
profile source: when it answers, its fields are merged over the cached
columns; when it does not, the cached columns are served as-is.
"""

import logging
from decimal import Decimal
from typing import Annotated

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError

from app.core.deps import CustomerGatewayDep, SessionDep
from app.core.exceptions import AppException
from app.shopify.exceptions import UpstreamUnavailableError
from app.shopify.gateway import CustomerGateway
from app.shopify.schemas import DataSource, UpstreamApi, UpstreamCustomer
from app.user.exceptions import UserExistsError
from app.user.models import User
from app.user.schemas import UserProfile
from app.user.store import ShopifyFields, UserStore

logger = logging.getLogger(__name__)

_FALLBACK_TAGS: dict[UpstreamApi, DataSource] = {
    "admin": DataSource.admin_fallback,
    "storefront": DataSource.storefront_fallback,
}


def _pick(upstream_value, local_value):
    return upstream_value if upstream_value is not None else local_value


def merge_user_profile(user: User, upstream: UpstreamCustomer | None) -> UserProfile:
    """Build the profile view for a user.

    id, email, created_at and updated_at always come from the local row.
    Every other field takes the upstream value when it is not None, and the
    locally cached value otherwise. With no upstream record the view is the
    local row alone.
    """
    base = UserProfile(
        id=user.id,
        email=user.email,
        name=user.name,
        phone=user.phone,
        shopify_id=user.shopify_id,
        shopify_created_at=user.shopify_created_at,
        number_of_orders=user.number_of_orders or 0,
        total_spent=user.total_spent if user.total_spent is not None else Decimal("0"),
        data_source=user.data_source,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
    if upstream is None:
        return base

    return base.model_copy(
        update={
            "name": _pick(upstream.display_name, user.name),
            "first_name": upstream.first_name,
            "last_name": upstream.last_name,
            "phone": _pick(upstream.phone, user.phone),
            "shopify_id": _pick(upstream.id, user.shopify_id),
            "shopify_created_at": _pick(upstream.created_at, user.shopify_created_at),
            "number_of_orders": _pick(upstream.number_of_orders, base.number_of_orders),
            "total_spent": _pick(upstream.total_spent, base.total_spent),
            "currency_code": upstream.currency_code,
            "data_source": upstream.data_source.value,
            "is_new_customer": upstream.is_new_customer,
            "default_address": upstream.default_address,
            "addresses": list(upstream.addresses),
        }
    )


def _shopify_fields(profile: UserProfile) -> ShopifyFields:
    return ShopifyFields(
        name=profile.name,
        phone=profile.phone,
        shopify_id=profile.shopify_id,
        shopify_created_at=profile.shopify_created_at,
        number_of_orders=profile.number_of_orders,
        total_spent=profile.total_spent,
        data_source=profile.data_source,
    )


def _default_name(email: str) -> str:
    return email.split("@", 1)[0]


class IdentityService:
    """Produces the merged profile for an email, creating the local user
    and the Shopify customer when needed."""

    def __init__(self, user_store: UserStore, gateway: CustomerGateway):
        self._users = user_store
        self._gateway = gateway

    async def customer_exists(self, email: str) -> bool:
        """Whether Shopify has a customer for this email.

        Raises:
            UpstreamUnavailableError: If the Admin API cannot answer
        """
        return await self._gateway.exists_by_email(email)

    async def get_or_create_user(
        self, email: str, force_refresh: bool = False
    ) -> UserProfile:
        """Return the merged profile, creating the local user if absent.

        force_refresh asks the Admin API first; otherwise the Storefront API
        is asked first. Upstream failures never fail this call.
        """
        user, created = self._get_or_create_local(email)

        primary: UpstreamApi = "admin" if force_refresh else "storefront"
        upstream, answered = await self._lookup(email, primary)

        if upstream is None and answered and created:
            upstream = await self._try_create_customer(user)

        if upstream is None:
            return merge_user_profile(user, None)

        profile = merge_user_profile(user, upstream)
        if not upstream.is_placeholder:
            self._persist(profile)
        return profile

    async def register_user(
        self,
        email: str,
        first_name: str,
        last_name: str,
        phone: str | None = None,
    ) -> UserProfile:
        """Create the Shopify customer, then the local user.

        Raises:
            UserExistsError: If a local user already exists for the email
            UpstreamCustomerExistsError: If Shopify already has the email
            UpstreamValidationError: If Shopify rejects the input
            UpstreamUnavailableError: If the Admin API cannot answer
        """
        if self._users.get_by_email(email) is not None:
            raise UserExistsError()

        upstream = await self._gateway.create_customer(
            email, first_name, last_name, phone
        )

        name = " ".join(part for part in (first_name, last_name) if part)
        user = self._users.create(email, name or _default_name(email), phone)

        profile = merge_user_profile(user, upstream)
        self._persist(profile)
        logger.info(
            "User registered",
            extra={"flow": "register", "email": email, "user_id": user.id},
        )
        return profile

    def _get_or_create_local(self, email: str) -> tuple[User, bool]:
        user = self._users.get_by_email(email)
        if user is not None:
            return user, False

        try:
            user = self._users.create(email, _default_name(email))
        except UserExistsError:
            user = self._users.get_by_email(email)
            if user is None:
                raise
            return user, False

        logger.info(
            "Local user created",
            extra={"flow": "get_or_create_user", "email": email, "user_id": user.id},
        )
        return user, True

    async def _lookup(
        self, email: str, primary: UpstreamApi
    ) -> tuple[UpstreamCustomer | None, bool]:
        """Ask the primary API, then the other one.

        Returns the customer (or None) and whether any API answered.
        """
        try:
            return await self._gateway.find_by_email(email, api=primary), True
        except UpstreamUnavailableError as e:
            logger.warning(
                "Shopify %s lookup failed, trying fallback: %s",
                primary,
                e.message,
                extra={"flow": "get_or_create_user", "email": email},
            )

        secondary: UpstreamApi = "storefront" if primary == "admin" else "admin"
        try:
            customer = await self._gateway.find_by_email(email, api=secondary)
        except UpstreamUnavailableError as e:
            logger.warning(
                "Shopify unavailable, serving local user: %s",
                e.message,
                extra={"flow": "get_or_create_user", "email": email},
            )
            return None, False

        if customer is None:
            return None, True
        return customer.tagged(_FALLBACK_TAGS[secondary]), True

    async def _try_create_customer(self, user: User) -> UpstreamCustomer | None:
        try:
            return await self._gateway.create_customer(
                user.email, user.name, "", user.phone
            )
        except AppException as e:
            logger.warning(
                "Shopify customer create failed for new user: %s",
                e,
                extra={"flow": "get_or_create_user", "email": user.email},
            )
            return None

    def _persist(self, profile: UserProfile) -> None:
        try:
            self._users.update_shopify_fields(profile.email, _shopify_fields(profile))
        except SQLAlchemyError as e:
            self._users.rollback()
            logger.error(
                "Failed to cache Shopify fields: %s",
                e,
                extra={"email": profile.email, "data_source": profile.data_source},
            )


def get_identity_service(
    session: SessionDep,
    gateway: CustomerGatewayDep,
) -> IdentityService:
    return IdentityService(UserStore(session), gateway)


IdentityServiceDep = Annotated[IdentityService, Depends(get_identity_service)]
