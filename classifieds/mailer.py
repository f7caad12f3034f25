"""
Outgoing mail over SMTP.

``MAIL_SECURITY`` selects ``starttls``, ``ssl`` or ``none``. With
``MAIL_SUPPRESS_SEND`` on, messages are appended to
``app.extensions['mail_outbox']`` instead of being delivered.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from flask import current_app

logger = logging.getLogger(__name__)


def get_outbox() -> list:
    return current_app.extensions.setdefault('mail_outbox', [])


def build_message(to: str, subject: str, body: str, sender: Optional[str] = None) -> EmailMessage:
    message = EmailMessage()
    message['From'] = sender or current_app.config.get('MAIL_DEFAULT_SENDER')
    message['To'] = to
    message['Subject'] = subject
    message.set_content(body)
    return message


def send_mail(to: str, subject: str, body: str, sender: Optional[str] = None) -> EmailMessage:
    """
    Send a plain-text email.

    Raises smtplib.SMTPException or OSError when delivery fails; callers
    decide whether that is fatal.
    """
    config = current_app.config
    message = build_message(to, subject, body, sender)

    if config.get('MAIL_SUPPRESS_SEND'):
        get_outbox().append(message)
        logger.debug(f"[MAIL] Suppressed send to {to}: {subject}")
        return message

    server_name = config.get('MAIL_SERVER', 'localhost')
    port = int(config.get('MAIL_PORT', 587))
    security = (config.get('MAIL_SECURITY') or 'starttls').lower()
    username = config.get('MAIL_USERNAME')
    password = config.get('MAIL_PASSWORD')

    if security == 'ssl':
        server = smtplib.SMTP_SSL(server_name, port, timeout=30, context=ssl.create_default_context())
    else:
        server = smtplib.SMTP(server_name, port, timeout=30)
    try:
        if security == 'starttls':
            server.starttls(context=ssl.create_default_context())
            server.ehlo()
        if username and password:
            server.login(username, password)
        server.send_message(message)
        logger.info(f"[MAIL] Sent '{subject}' to {to} via {server_name}:{port}")
    finally:
        server.quit()
    return message
