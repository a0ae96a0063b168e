"""
FastAPI Dependencies

Hands the service container to routes and resolves the caller from the
``Authorization`` header.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from pizza_service.container import ServiceContainer
from pizza_service.core.exceptions import AuthenticationError
from pizza_service.services.sessions import Actor, parse_bearer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Bearer token from the request, or None for any other header shape."""
    return parse_bearer(authorization)


async def get_actor(
    request: Request,
    token: Optional[str] = Depends(get_token),
    container: ServiceContainer = Depends(get_container),
) -> Optional[Actor]:
    """The calling actor, or None for an anonymous caller."""
    actor = await container.sessions.resolve_actor(token)
    request.state.actor = actor
    return actor


async def require_actor(actor: Optional[Actor] = Depends(get_actor)) -> Actor:
    """
    The calling actor; anonymous callers are rejected.

    Raises:
        AuthenticationError: No valid session
    """
    if actor is None:
        raise AuthenticationError()
    return actor
