"""
Order Routes

    GET  /api/order/menu   the menu
    PUT  /api/order/menu   add a menu item (admin)
    GET  /api/order        the caller's orders
    POST /api/order        place an order
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from pizza_service.container import ServiceContainer
from pizza_service.dependencies import get_container, require_actor
from pizza_service.schemas import (
    MenuItemCreate,
    MenuItemOut,
    OrderCreate,
    OrderCreateResponse,
    OrderHistoryResponse,
    OrderOut,
)
from pizza_service.services.authorization import Action, enforce
from pizza_service.services.sessions import Actor
from pizza_service.stores.base import OrderItem

router = APIRouter(prefix="/api/order", tags=["Orders"])


@router.get(
    "/menu",
    response_model=List[MenuItemOut],
    summary="Get the pizza menu",
)
async def get_menu(container: ServiceContainer = Depends(get_container)) -> List[MenuItemOut]:
    return [MenuItemOut.model_validate(item) for item in await container.ledger.get_menu()]


@router.put(
    "/menu",
    response_model=List[MenuItemOut],
    summary="Add an item to the menu",
)
async def add_menu_item(
    body: MenuItemCreate,
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> List[MenuItemOut]:
    enforce(actor, Action.ADD_MENU_ITEM, message="unable to add menu item")
    menu = await container.ledger.add_menu_item(
        body.title,
        description=body.description,
        image=body.image,
        price=body.price,
    )
    return [MenuItemOut.model_validate(item) for item in menu]


@router.get(
    "",
    response_model=OrderHistoryResponse,
    summary="Get the orders for the authenticated user",
)
async def get_orders(
    page: int = Query(0, ge=0),
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> OrderHistoryResponse:
    enforce(actor, Action.VIEW_ORDERS)
    history = await container.ledger.get_orders(actor.id, page)
    return OrderHistoryResponse(
        diner_id=history.diner_id,
        orders=[OrderOut.model_validate(order) for order in history.orders],
        page=history.page,
    )


@router.post(
    "",
    response_model=OrderCreateResponse,
    summary="Create an order for the authenticated user",
)
async def create_order(
    body: OrderCreate,
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
) -> OrderCreateResponse:
    enforce(actor, Action.PLACE_ORDER)
    placed = await container.ledger.place_order(
        actor.user,
        body.franchise_id,
        body.store_id,
        [
            OrderItem(menu_id=item.menu_id, description=item.description, price=item.price)
            for item in body.items
        ],
    )
    return OrderCreateResponse(
        order=OrderOut.model_validate(placed.order),
        follow_link_to_end_chaos=placed.fulfillment.report_url,
        jwt=placed.fulfillment.jwt,
    )
