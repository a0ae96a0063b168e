"""
Pizza Factory Fulfillment Service

Production implementation that posts orders to the pizza factory over HTTP.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - FACTORY_URL points at the factory
    - FACTORY_API_KEY authenticates this service to it

Contract:
    POST {FACTORY_URL}/api/order
    Authorization: Bearer {FACTORY_API_KEY}
    {"diner": {"id", "name", "email"}, "order": {...}}

    2xx → {"jwt": "...", "reportUrl": "..."}
    anything else, a transport error or a timeout → failure
"""

import logging
import time
from typing import Any, Optional

import httpx

from pizza_service.services.fulfillment.base import (
    BaseFulfillmentService,
    FulfillmentResult,
)
from pizza_service.stores.base import Order, User

logger = logging.getLogger(__name__)


def order_payload(order: Order) -> dict[str, Any]:
    """Order body as the factory expects it."""
    return {
        "id": order.id,
        "franchiseId": order.franchise_id,
        "storeId": order.store_id,
        "date": order.date.isoformat(),
        "items": [
            {"menuId": item.menu_id, "description": item.description, "price": item.price}
            for item in order.items
        ],
    }


class FactoryFulfillmentService(BaseFulfillmentService):
    """
    HTTP client for the pizza factory.

    Every call is bounded by ``timeout`` seconds. Failures are returned as
    results, never raised.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            logger.warning("FACTORY_API_KEY not configured; factory calls will be rejected")

        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Authorization": f"Bearer {api_key or ''}"},
            transport=transport,
        )
        logger.info(f"FactoryFulfillmentService initialized (url={self._base_url}, timeout={timeout}s)")

    @property
    def provider_name(self) -> str:
        return "factory"

    async def fulfill(self, diner: User, order: Order) -> FulfillmentResult:
        start_time = time.monotonic()
        payload = {
            "diner": {"id": diner.id, "name": diner.name, "email": diner.email},
            "order": order_payload(order),
        }

        try:
            response = await self._client.post("/api/order", json=payload)
        except httpx.TimeoutException:
            logger.error(f"Factory: Timed out fulfilling order #{order.id}")
            return FulfillmentResult(
                success=False,
                error_message="factory timed out",
                response_time_ms=(time.monotonic() - start_time) * 1000,
            )
        except httpx.HTTPError as e:
            logger.error(f"Factory: Transport error for order #{order.id}: {e}")
            return FulfillmentResult(
                success=False,
                error_message="factory unreachable",
                response_time_ms=(time.monotonic() - start_time) * 1000,
            )

        elapsed_ms = (time.monotonic() - start_time) * 1000
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.is_success:
            logger.warning(f"Factory: Order #{order.id} rejected with HTTP {response.status_code}")
            return FulfillmentResult(
                success=False,
                report_url=body.get("reportUrl"),
                error_message=body.get("message") or f"factory returned {response.status_code}",
                response_time_ms=elapsed_ms,
            )

        logger.info(f"Factory: Order #{order.id} fulfilled in {elapsed_ms:.0f}ms")
        return FulfillmentResult(
            success=True,
            jwt=body.get("jwt"),
            report_url=body.get("reportUrl"),
            response_time_ms=elapsed_ms,
        )

    async def close(self) -> None:
        await self._client.aclose()
