import logging

import resend

from app.core.constants import JinjaCompiledEmailTemplatesEnv
from app.core.exceptions import EmailDeliveryError
from app.core.settings import get_settings

logger = logging.getLogger(__name__)


def _render_template(template_name: str, **context: str) -> str:
    """Render a pre-compiled email template.

    Templates are pre-compiled with CSS inlined and HTML minified.
    Run `python scripts/compile_emails.py` after modifying source templates.

    Args:
        template_name: Name of the template file
        **context: Template variables

    Returns:
        Rendered HTML
    """
    template = JinjaCompiledEmailTemplatesEnv.get_template(template_name)
    return template.render(**context)


def init_resend() -> None:
    """Initialize Resend with API key if available."""
    settings = get_settings()
    if not settings.resend_api_key:
        logger.warning("RESEND_API_KEY is not set; OTP emails cannot be sent")
        return
    resend.api_key = settings.resend_api_key


def send_otp_email(to_email: str, code: str, expires_minutes: int) -> None:
    """Send a one-time login code via Resend.

    Args:
        to_email: Recipient email address
        code: The 6-digit code
        expires_minutes: Lifetime shown to the recipient

    Raises:
        EmailDeliveryError: If Resend is not configured or rejects the message
    """
    settings = get_settings()
    if not settings.resend_api_key:
        raise EmailDeliveryError("Email delivery is not configured")

    html_content = _render_template(
        "otp-code.html",
        code=code,
        expires_minutes=str(expires_minutes),
        app_name=settings.app_name,
    )

    try:
        resend.Emails.send(
            {
                "from": settings.email_from,
                "to": to_email,
                "subject": f"Your {settings.app_name} login code",
                "html": html_content,
            }
        )
    except Exception as e:
        logger.error(
            "OTP email dispatch failed: %s",
            e,
            extra={"flow": "send_otp", "email": to_email},
        )
        raise EmailDeliveryError("Failed to send email") from e

    logger.info("OTP email sent", extra={"flow": "send_otp", "email": to_email})
