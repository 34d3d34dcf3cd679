"""Email channel factory.

Uses the in-memory fake adapter by default. ``EMAIL_ADAPTER=smtp`` switches
to real delivery through the configured SMTP server.
"""

from storefront.errors import ConfigurationError
from storefront.notifications.channel.email_port import EmailPort
from storefront.notifications.channel.fake_email import FakeEmailAdapter
from storefront.notifications.channel.smtp_email import SmtpEmailAdapter
from storefront.settings import Settings


def build_email_channel(settings: Settings) -> EmailPort:
    if settings.email_adapter == "fake":
        return FakeEmailAdapter()
    if settings.email_adapter == "smtp":
        return SmtpEmailAdapter(
            host=settings.smtp_host,
            port=settings.smtp_port,
            from_email=settings.smtp_from_email,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_ssl=settings.smtp_port == 465,
        )
    raise ConfigurationError(f"EMAIL_ADAPTER={settings.email_adapter}")
