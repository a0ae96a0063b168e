"""
User Routes

    GET    /api/user/me    the caller's own profile
    GET    /api/user       list users (admin)
    PUT    /api/user/:id   update a profile (self or admin)
    DELETE /api/user/:id   delete a user (self or admin)
"""

from fastapi import APIRouter, Depends, Query

from pizza_service.container import ServiceContainer
from pizza_service.dependencies import get_container, require_actor
from pizza_service.schemas import (
    AuthResponse,
    MessageResponse,
    UpdateUserRequest,
    UserListResponse,
    UserOut,
)
from pizza_service.services.authorization import Action, Target, enforce
from pizza_service.services.sessions import Actor

router = APIRouter(prefix="/api/user", tags=["Users"])


@router.get(
    "/me",
    response_model=UserOut,
    response_model_exclude_none=True,
    summary="Get authenticated user",
)
async def get_me(actor: Actor = Depends(require_actor)) -> UserOut:
    return UserOut.model_validate(actor.user)


@router.get(
    "",
    response_model=UserListResponse,
    response_model_exclude_none=True,
    summary="List users",
)
async def list_users(
    page: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    name: str = Query("*"),
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> UserListResponse:
    enforce(actor, Action.LIST_USERS)
    result = await container.credentials.list_users(page, limit, name)
    return UserListResponse(
        users=[UserOut.model_validate(user) for user in result.items],
        more=result.more,
    )


@router.put(
    "/{user_id}",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    summary="Update user",
)
async def update_user(
    user_id: int,
    body: UpdateUserRequest,
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> AuthResponse:
    enforce(actor, Action.UPDATE_USER, Target(user_id=user_id))
    user = await container.credentials.update_profile(
        user_id,
        name=body.name,
        email=body.email,
        password=body.password,
    )
    token = await container.sessions.issue(user)
    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete user",
)
async def delete_user(
    user_id: int,
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    enforce(actor, Action.DELETE_USER, Target(user_id=user_id))
    await container.credentials.delete_user(user_id)
    return MessageResponse(message="user deleted")
