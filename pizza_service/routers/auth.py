"""
Auth Routes

    POST   /api/auth   register a diner
    PUT    /api/auth   log in
    DELETE /api/auth   log out
"""

import logging

from fastapi import APIRouter, Depends

from pizza_service.container import ServiceContainer
from pizza_service.core.exceptions import AuthenticationError, ServiceError
from pizza_service.dependencies import get_container, get_token, require_actor
from pizza_service.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserOut,
)
from pizza_service.services.sessions import Actor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    summary="Register a new user",
)
async def register(
    body: RegisterRequest,
    container: ServiceContainer = Depends(get_container),
) -> AuthResponse:
    user = await container.credentials.register(body.name, body.email, body.password)
    token = await container.sessions.issue(user)
    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.put(
    "",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    summary="Login existing user",
)
async def login(
    body: LoginRequest,
    container: ServiceContainer = Depends(get_container),
) -> AuthResponse:
    try:
        user = await container.credentials.authenticate(body.email, body.password)
    except AuthenticationError as e:
        # Rejected logins answer 500, not 401 (existing client contract)
        raise ServiceError(e.message, status_code=500) from e
    token = await container.sessions.issue(user)
    logger.info(f"User #{user.id} logged in")
    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Logout a user",
)
async def logout(
    actor: Actor = Depends(require_actor),
    token: str = Depends(get_token),
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    await container.sessions.revoke(token)
    logger.info(f"User #{actor.id} logged out")
    return MessageResponse(message="logout successful")
