"""Table registry for Alembic.

`app/alembic/env.py` imports this package; every `table=True` model must be
imported here or autogenerate will not see its table.
"""

from app.auth.models import AuthSession, Otp  # noqa: F401
from app.user.models import User  # noqa: F401
