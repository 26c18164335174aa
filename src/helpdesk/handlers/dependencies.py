"""Lazy access to the shared ServiceContainer."""

from __future__ import annotations

from typing import Optional

# Lazy-loaded to avoid import-time DB connections
_container: Optional["ServiceContainer"] = None


def get_container() -> "ServiceContainer":
    """Build the container on first use and reuse it across warm invocations."""
    global _container
    if _container is None:
        from helpdesk.config.settings import AppSettings
        from helpdesk.container import ServiceContainer
        from helpdesk.repositories.postgres_repo import get_engine

        settings = AppSettings.from_environment()
        _container = ServiceContainer(settings, get_engine(settings))
    return _container


def set_container(container: Optional["ServiceContainer"]) -> None:
    """Install a prebuilt container (tests, local servers) or reset with None."""
    global _container
    _container = container
