"""Persistence for the local User record."""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.user.exceptions import UserExistsError
from app.user.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShopifyFields:
    """Denormalized upstream fields cached on the User row."""

    name: str
    phone: str | None
    shopify_id: str | None
    shopify_created_at: datetime | None
    number_of_orders: int
    total_spent: Decimal
    data_source: str | None


class UserStore:
    """CRUD for users keyed by email.

    Uniqueness of email is enforced by the database; a lost create race
    surfaces as UserExistsError so callers can re-fetch.
    """

    def __init__(self, session: Session):
        self._session = session

    def get_by_email(self, email: str) -> User | None:
        return self._session.exec(select(User).where(User.email == email)).first()

    def get_by_id(self, user_id: int) -> User | None:
        return self._session.get(User, user_id)

    def create(self, email: str, name: str, phone: str | None = None) -> User:
        """Insert a new user.

        Raises:
            UserExistsError: If a row for this email already exists
        """
        user = User(email=email, name=name, phone=phone)
        self._session.add(user)
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            logger.info("User create conflict", extra={"email": email})
            raise UserExistsError() from e
        self._session.refresh(user)
        return user

    def update_shopify_fields(self, email: str, fields: ShopifyFields) -> User | None:
        """Overwrite the cached Shopify columns for a user.

        Identity columns (id, email, created_at) are never touched.
        Returns the refreshed user, or None if no row matches.
        """
        user = self.get_by_email(email)
        if user is None:
            return None
        for key, value in asdict(fields).items():
            setattr(user, key, value)
        self._session.add(user)
        self._session.commit()
        self._session.refresh(user)
        return user

    def rollback(self) -> None:
        self._session.rollback()
