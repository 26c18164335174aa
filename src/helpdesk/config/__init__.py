"""Runtime configuration."""

from helpdesk.config.settings import AppSettings  # noqa: F401
