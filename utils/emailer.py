import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from flask import current_app

logger = logging.getLogger(__name__)

EMAIL_NOT_CONFIGURED = "Email not configured"


def send_email(to_email: str, subject: str, body: str, html: str = None):
    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    from_name = current_app.config.get("SMTP_FROM_NAME")
    use_tls = current_app.config.get("SMTP_USE_TLS", True)

    if not host or not from_email:
        return False, EMAIL_NOT_CONFIGURED

    msg = EmailMessage()
    msg["From"] = formataddr((from_name, from_email)) if from_name else from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")

    try:
        # port 465 speaks TLS from the first byte
        smtp_cls = smtplib.SMTP_SSL if port == 465 else smtplib.SMTP
        with smtp_cls(host, port, timeout=10) as server:
            if use_tls and smtp_cls is smtplib.SMTP:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("SMTP send to %s failed: %s", to_email, exc)
        return False, str(exc)
