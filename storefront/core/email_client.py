# storefront/core/email_client.py
"""
Outbound email for the storefront (password reset links).

SMTP settings come from the environment and are read on every send, so a
missing configuration only fails the send, not the import:

    SMTP_HOST=smtp.example.com
    SMTP_PORT=587
    SMTP_USERNAME=no-reply@example.com
    SMTP_PASSWORD=...
    SMTP_FROM_EMAIL=no-reply@example.com
    SMTP_FROM_NAME=Perfume Storefront
    SMTP_USE_TLS=true
    SMTP_USE_SSL=false
"""
from __future__ import annotations

import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage


def _get_bool_env(name: str, default: bool = False) -> bool:
    """
    Read a boolean env var.

    Accepted truthy values (case-insensitive): "1", "true", "yes", "y".
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class SmtpConfig:
    host: str | None
    port: int
    username: str | None
    password: str | None
    from_email: str
    from_name: str
    use_tls: bool
    use_ssl: bool

    @property
    def is_complete(self) -> bool:
        return bool(self.host and self.username and self.password)

    @property
    def from_header(self) -> str:
        if self.from_email:
            return f"{self.from_name} <{self.from_email}>"
        return self.username or ""


def load_smtp_config() -> SmtpConfig:
    username = os.getenv("SMTP_USERNAME")
    return SmtpConfig(
        host=os.getenv("SMTP_HOST"),
        port=int(os.getenv("SMTP_PORT", "587")),
        username=username,
        password=os.getenv("SMTP_PASSWORD"),
        from_email=os.getenv("SMTP_FROM_EMAIL", username or ""),
        from_name=os.getenv("SMTP_FROM_NAME", "Perfume Storefront"),
        use_tls=_get_bool_env("SMTP_USE_TLS", default=True),
        use_ssl=_get_bool_env("SMTP_USE_SSL", default=False),
    )


def _create_smtp_client(config: SmtpConfig) -> smtplib.SMTP:
    """
    SSL (usually port 465) when SMTP_USE_SSL, otherwise plain SMTP upgraded
    with STARTTLS when SMTP_USE_TLS (usually port 587).
    """
    if config.use_ssl:
        server: smtplib.SMTP = smtplib.SMTP_SSL(config.host, config.port, timeout=30)
    else:
        server = smtplib.SMTP(config.host, config.port, timeout=30)
        if config.use_tls:
            server.starttls()
    return server


def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
) -> None:
    """
    Send an email to a single recipient.

    Raises
    ------
    RuntimeError:
        If required SMTP configuration is missing.
    smtplib.SMTPException:
        If the underlying SMTP connection or send fails.
    """
    config = load_smtp_config()
    if not config.is_complete:
        raise RuntimeError(
            "SMTP is not configured correctly. "
            "Please set SMTP_HOST, SMTP_USERNAME, and SMTP_PASSWORD in .env."
        )

    msg = EmailMessage()
    msg["From"] = config.from_header
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    server = _create_smtp_client(config)
    try:
        server.login(config.username, config.password)  # type: ignore[arg-type]
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException:
            pass
