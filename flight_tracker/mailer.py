from __future__ import annotations

from email.message import EmailMessage
import smtplib
import ssl
from typing import Optional


def send_email(
    subject: str,
    text_body: str,
    smtp_host: str,
    smtp_user: str,
    smtp_pass: str,
    to_addr: str,
    *,
    html_body: Optional[str] = None,
    port: int = 465,
    use_tls: bool = False,
    timeout: float = 30.0,
) -> None:
    """Send ``text_body`` to ``to_addr``, with ``html_body`` as an HTML alternative.

    Connects with ``SMTP_SSL`` on ``port`` (465 by default), or with plain
    ``SMTP`` upgraded by ``STARTTLS`` when ``use_tls`` is set.  Logs in as
    ``smtp_user`` when given.  ``timeout`` bounds every socket operation;
    SMTP and socket errors propagate to the caller.
    """
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = smtp_user
    msg["To"] = to_addr

    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(
            f"<html><body>{html_body}</body></html>", subtype="html"
        )

    ctx = ssl.create_default_context()
    if use_tls:
        with smtplib.SMTP(smtp_host, port, timeout=timeout) as smtp:
            smtp.starttls(context=ctx)
            if smtp_user:
                smtp.login(smtp_user, smtp_pass)
            smtp.send_message(msg)
    else:
        with smtplib.SMTP_SSL(smtp_host, port, context=ctx, timeout=timeout) as smtp:
            if smtp_user:
                smtp.login(smtp_user, smtp_pass)
            smtp.send_message(msg)


__all__ = ["send_email"]
