"""
Service dependency container.

Services are created once in the application lifespan and handed to
request handlers through FastAPI's Depends() mechanism.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rgpanel.services.ripgrep import RipgrepSearchService
    from rgpanel.services.session import SearchSession


class ServiceContainer:
    """Container for all application services."""

    def __init__(self, search_session: SearchSession) -> None:
        self.search_session = search_session


_container: ServiceContainer | None = None


def init_container(
    search_service: RipgrepSearchService,
    search_session: SearchSession | None = None,
) -> ServiceContainer:
    """Initialize service container (called once in FastAPI lifespan).

    Args:
        search_service: RipgrepSearchService the session runs searches with
        search_session: Session holding staged options and the last search;
            a fresh one wrapping search_service is created when omitted
    """
    global _container

    if search_session is None:
        from rgpanel.services.session import SearchSession

        search_session = SearchSession(search_service=search_service)

    _container = ServiceContainer(search_session=search_session)
    return _container


def get_container() -> ServiceContainer:
    """Get service container (use via FastAPI Depends).

    Raises:
        RuntimeError: If container not initialized (lifespan not running)
    """
    if _container is None:
        msg = "Service container not initialized - application lifespan may not be running"
        raise RuntimeError(msg)
    return _container


def reset_container() -> None:
    """Drop the container (testing only)."""
    global _container
    _container = None
