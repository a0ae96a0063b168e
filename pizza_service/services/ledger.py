"""
Catalog & Order Ledger

The menu catalog and each diner's order history.

Order placement is at-least-once toward the factory: the order is
persisted first, then handed to the fulfillment service. A factory failure
is reported to the caller but the stored order stays.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from pizza_service.core.exceptions import DependencyError, ValidationError
from pizza_service.services.directory import DirectoryService
from pizza_service.services.fulfillment import BaseFulfillmentService, FulfillmentResult
from pizza_service.stores.base import BaseLedgerStore, MenuItem, Order, OrderItem, User

logger = logging.getLogger(__name__)


@dataclass
class PlacedOrder:
    order: Order
    fulfillment: FulfillmentResult


@dataclass
class OrderHistory:
    diner_id: int
    orders: list[Order]
    page: int
    more: bool = False


class OrderLedger:
    """
    Menu and order operations.

    Attributes:
        page_size: Orders per page of a diner's history
        fulfillment_timeout: Hard upper bound for one fulfillment call, in seconds
    """

    def __init__(
        self,
        store: BaseLedgerStore,
        directory: DirectoryService,
        fulfillment: BaseFulfillmentService,
        page_size: int = 10,
        fulfillment_timeout: float = 10.0,
    ):
        self._store = store
        self._directory = directory
        self._fulfillment = fulfillment
        self.page_size = page_size
        self.fulfillment_timeout = fulfillment_timeout

    # =========================================================================
    # CATALOG
    # =========================================================================

    async def get_menu(self) -> list[MenuItem]:
        return await self._store.get_menu()

    async def add_menu_item(
        self,
        title: Optional[str],
        description: str = "",
        image: str = "",
        price: float = 0.0,
    ) -> list[MenuItem]:
        """Append an item to the menu and return the updated menu."""
        if not title:
            raise ValidationError("menu item title is required")
        if price < 0:
            raise ValidationError("menu item price must not be negative")
        item = await self._store.add_menu_item(title, description or "", image or "", price)
        logger.info(f"Added menu item #{item.id} '{item.title}' at {item.price}")
        return await self._store.get_menu()

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def place_order(
        self,
        diner: User,
        franchise_id: int,
        store_id: int,
        items: list[OrderItem],
    ) -> PlacedOrder:
        """
        Persist an order for ``diner`` and send it to the factory.

        Raises:
            ValidationError: If the order has no items
            DependencyError: If the factory fails; the order is already stored
        """
        if not items:
            raise ValidationError("an order needs at least one item")

        order = await self._store.add_order(diner.id, franchise_id, store_id, items)
        logger.info(f"Order #{order.id} stored for diner #{diner.id} (store #{store_id})")
        await self._directory.record_revenue(store_id, order.total)

        try:
            result = await asyncio.wait_for(
                self._fulfillment.fulfill(diner, order),
                timeout=self.fulfillment_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Order #{order.id}: fulfillment exceeded {self.fulfillment_timeout}s")
            result = FulfillmentResult(success=False, error_message="factory timed out")
        except Exception as e:
            logger.exception(f"Order #{order.id}: fulfillment raised {type(e).__name__}")
            result = FulfillmentResult(success=False, error_message=str(e))

        if not result.success:
            logger.warning(f"Order #{order.id} stored but not fulfilled: {result.error_message}")
            raise DependencyError(
                "Failed to fulfill order at factory",
                extra={"followLinkToEndChaos": result.report_url},
            )

        logger.info(
            f"Order #{order.id} fulfilled by {self._fulfillment.provider_name} "
            f"in {result.response_time_ms:.0f}ms"
        )
        return PlacedOrder(order=order, fulfillment=result)

    async def get_orders(self, diner_id: int, page: int = 0) -> OrderHistory:
        """A page of the diner's orders, oldest first."""
        if page < 0:
            raise ValidationError("page must be >= 0")
        result = await self._store.get_orders(diner_id, page * self.page_size, self.page_size)
        return OrderHistory(diner_id=diner_id, orders=result.items, page=page, more=result.more)
