"""
Franchise Routes

    GET    /api/franchise                          list franchises
    GET    /api/franchise/:userId                  franchises a user administers
    POST   /api/franchise                          create a franchise (admin)
    DELETE /api/franchise/:franchiseId             delete a franchise
    POST   /api/franchise/:franchiseId/store       create a store
    DELETE /api/franchise/:franchiseId/store/:id   delete a store
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from pizza_service.container import ServiceContainer
from pizza_service.dependencies import get_container, require_actor
from pizza_service.schemas import (
    FranchiseCreate,
    FranchiseListResponse,
    FranchiseOut,
    MessageResponse,
    StoreCreate,
    StoreOut,
)
from pizza_service.services.authorization import Action, Target, authorize, enforce
from pizza_service.services.sessions import Actor

router = APIRouter(prefix="/api/franchise", tags=["Franchises"])


@router.get(
    "",
    response_model=FranchiseListResponse,
    summary="List all the franchises",
)
async def list_franchises(
    page: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    name: str = Query("*"),
    container: ServiceContainer = Depends(get_container),
) -> FranchiseListResponse:
    result = await container.directory.list_franchises(page, limit, name)
    return FranchiseListResponse(
        franchises=[FranchiseOut.model_validate(f) for f in result.items],
        more=result.more,
    )


@router.get(
    "/{user_id}",
    response_model=List[FranchiseOut],
    summary="List a user's franchises",
)
async def list_user_franchises(
    user_id: int,
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> List[FranchiseOut]:
    # Other people's franchises read as an empty list, not a 403
    if not authorize(actor, Action.LIST_USER_FRANCHISES, Target(user_id=user_id)):
        return []
    franchises = await container.directory.franchises_for_user(user_id)
    return [FranchiseOut.model_validate(f) for f in franchises]


@router.post(
    "",
    response_model=FranchiseOut,
    summary="Create a new franchise",
)
async def create_franchise(
    body: FranchiseCreate,
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> FranchiseOut:
    enforce(actor, Action.CREATE_FRANCHISE, message="unable to create a franchise")
    franchise = await container.directory.create_franchise(
        body.name,
        [admin.email for admin in body.admins],
    )
    return FranchiseOut.model_validate(franchise)


@router.delete(
    "/{franchise_id}",
    response_model=MessageResponse,
    summary="Delete a franchise",
)
async def delete_franchise(
    franchise_id: int,
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    await container.directory.delete_franchise(franchise_id)
    return MessageResponse(message="franchise deleted")


@router.post(
    "/{franchise_id}/store",
    response_model=StoreOut,
    summary="Create a new franchise store",
)
async def create_store(
    franchise_id: int,
    body: StoreCreate,
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> StoreOut:
    franchise = await container.directory.get_franchise(franchise_id)
    enforce(
        actor,
        Action.CREATE_STORE,
        Target(franchise=franchise),
        message="unable to create a store",
    )
    store = await container.directory.create_store(franchise_id, body.name)
    return StoreOut.model_validate(store)


@router.delete(
    "/{franchise_id}/store/{store_id}",
    response_model=MessageResponse,
    summary="Delete a store",
)
async def delete_store(
    franchise_id: int,
    store_id: int,
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    franchise = await container.directory.get_franchise(franchise_id)
    enforce(
        actor,
        Action.DELETE_STORE,
        Target(franchise=franchise),
        message="unable to delete a store",
    )
    await container.directory.delete_store(franchise_id, store_id)
    return MessageResponse(message="store deleted")
