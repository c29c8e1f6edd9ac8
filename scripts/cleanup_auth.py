#!/usr/bin/env python3
"""Delete expired OTP codes and expired or revoked sessions.

Maintenance task; schedule it (cron, a platform job) rather than running it
per request:
    python scripts/cleanup_auth.py
"""

import logging

from sqlmodel import Session

from app.auth.stores import OtpStore, SessionStore
from app.core.logging import configure_logging
from app.db.engine import engine

logger = logging.getLogger("scripts.cleanup_auth")


def cleanup(session: Session) -> tuple[int, int]:
    """Purge expired auth rows. Returns (sessions_removed, otps_removed)."""
    sessions_removed = SessionStore(session).cleanup_expired()
    otps_removed = OtpStore(session).purge_expired()
    return sessions_removed, otps_removed


def main() -> None:
    configure_logging()
    with Session(engine) as session:
        sessions_removed, otps_removed = cleanup(session)
    logger.info(
        "Auth cleanup done: %d sessions, %d OTP codes removed",
        sessions_removed,
        otps_removed,
    )


if __name__ == "__main__":
    main()
