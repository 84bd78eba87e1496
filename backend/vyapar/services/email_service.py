# FILE: backend/vyapar/services/email_service.py
# LOCALVYAPAR - EMAIL
# 1. USES: Standard 'smtplib' over TLS.
# 2. Runs synchronously; endpoints hand it to BackgroundTasks.
# 3. Missing SMTP settings skip the send with a warning.

import smtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from ..core.config import settings

logger = logging.getLogger(__name__)

def build_reset_link(token: str) -> str:
    return f"{settings.APP_URL}/reset-password?token={token}"

def send_password_reset_email_sync(email: str, token: str) -> bool:
    if not settings.SMTP_USER or not settings.SMTP_PASSWORD:
        logger.warning("Email configuration missing. Skipping password reset email.")
        return False

    msg = MIMEMultipart()
    msg['From'] = settings.SMTP_USER
    msg['To'] = email
    msg['Subject'] = "Reset your LocalVyapar password"

    body = f"""
    Namaste!

    We received a request to reset your LocalVyapar password.
    Open this link within {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes to choose a new one:

    {build_reset_link(token)}

    If you did not ask for this, you can ignore this email.
    """
    msg.attach(MIMEText(body, 'plain'))

    try:
        server = smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT)
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(msg)
        server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send password reset email: {e}")
        return False

    logger.info("📧 Password reset email sent.")
    return True
