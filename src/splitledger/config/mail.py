"""Outbound mail configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import int_env_var, optional_env_var

DEFAULT_SMTP_HOST = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 587
DEFAULT_SENDER_NAME = "Splitledger"
DEFAULT_SIGNUP_URL = "http://localhost:5173/register"


@dataclass(frozen=True, slots=True)
class MailConfig:
    user: str
    password: str | None
    host: str = DEFAULT_SMTP_HOST
    port: int = DEFAULT_SMTP_PORT
    sender: str | None = None
    use_starttls: bool = True

    @property
    def from_address(self) -> str:
        return self.sender or f"{DEFAULT_SENDER_NAME} <{self.user}>"


def get_mail_config() -> MailConfig | None:
    """Return SMTP settings, or ``None`` when outbound mail is not configured."""

    user = optional_env_var("EMAIL_USER")
    if user is None:
        return None
    return MailConfig(
        user=user,
        password=optional_env_var("EMAIL_PASSWORD"),
        host=optional_env_var("EMAIL_HOST") or DEFAULT_SMTP_HOST,
        port=int_env_var("EMAIL_PORT", DEFAULT_SMTP_PORT, minimum=1),
        sender=optional_env_var("EMAIL_FROM"),
    )


def get_signup_url() -> str:
    """Link placed in group invitations sent to unknown addresses."""

    return optional_env_var("SPLITLEDGER_SIGNUP_URL") or DEFAULT_SIGNUP_URL
