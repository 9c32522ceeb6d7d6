"""Email channel registry.

Provides singleton access to the email adapter. The in-memory fake adapter is
the default; ``EMAIL_ADAPTER`` selects another one.
"""

import os

from storefront.notifications.channel.email_port import EmailPort

_email_channel: EmailPort | None = None


def get_email_channel() -> EmailPort:
    """Return the configured email adapter (singleton)."""
    global _email_channel
    if _email_channel is None:
        adapter = os.environ.get("EMAIL_ADAPTER", "fake")
        if adapter == "fake":
            from storefront.notifications.channel.fake_email import FakeEmailAdapter

            _email_channel = FakeEmailAdapter()
        else:
            raise ValueError(f"Unknown email adapter: {adapter}")
    return _email_channel


def reset_email_channel() -> None:
    """Drop the singleton (useful for testing)."""
    global _email_channel
    _email_channel = None
