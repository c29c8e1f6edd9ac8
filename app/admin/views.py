from sqladmin import ModelView

from app.auth.models import AuthSession
from app.user.models import User


class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"

    can_create = False

    column_list = [
        User.id,
        User.email,
        User.name,
        User.phone,
        User.shopify_id,
        User.number_of_orders,
        User.total_spent,
        User.data_source,
        User.created_at,
        User.updated_at,
    ]

    column_searchable_list = [
        User.email,
        User.name,
        User.shopify_id,
    ]

    column_sortable_list = [getattr(User, field) for field in User.model_fields]


class AuthSessionAdmin(ModelView, model=AuthSession):
    name = "Session"
    name_plural = "Sessions"

    can_create = False
    can_edit = False

    column_list = [
        AuthSession.id,
        AuthSession.user_id,
        AuthSession.created_at,
        AuthSession.expires_at,
        AuthSession.revoked,
    ]
    # Tokens are bearer credentials; keep them off list and detail pages.
    column_details_exclude_list = [AuthSession.token]

    column_sortable_list = [
        AuthSession.id,
        AuthSession.user_id,
        AuthSession.created_at,
        AuthSession.expires_at,
    ]
