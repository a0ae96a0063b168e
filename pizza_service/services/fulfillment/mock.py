"""
Mock Fulfillment Service Implementation

Simulates the pizza factory without making network calls.
Used in development mode (ENV_MODE=development) and by tests to:
    - Place orders end to end without factory credentials
    - Exercise the "order persisted, factory failed" path on demand

Behavior:
    - Simulates a short response time
    - Fails a configurable share of orders
    - Returns signed verification JWTs and report links
"""

import asyncio
import logging
import random
import uuid
from collections import deque

from pizza_service.core.security import TokenSigner
from pizza_service.services.fulfillment.base import (
    BaseFulfillmentService,
    FulfillmentResult,
)
from pizza_service.stores.base import Order, User

logger = logging.getLogger(__name__)


class MockFulfillmentService(BaseFulfillmentService):
    """
    Mock implementation of the fulfillment service.

    Attributes:
        failure_rate: Probability of a simulated factory failure (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
        fulfilled: Ids of the most recent fulfilled orders, newest last
    """

    REPORT_BASE_URL = "https://factory.mock/report"
    SIGNING_KEY = "mock-factory-key"
    HISTORY_SIZE = 100

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.05,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.fulfilled: deque[int] = deque(maxlen=self.HISTORY_SIZE)
        self._signer = TokenSigner(self.SIGNING_KEY)

        logger.info(
            f"MockFulfillmentService initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> float:
        latency = random.uniform(self.min_latency, self.max_latency)
        await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    def _report_url(self) -> str:
        return f"{self.REPORT_BASE_URL}/{uuid.uuid4().hex[:16]}"

    async def fulfill(self, diner: User, order: Order) -> FulfillmentResult:
        latency_ms = await self._simulate_latency()

        if self._should_fail():
            logger.debug(f"Mock: Factory rejected order #{order.id}")
            return FulfillmentResult(
                success=False,
                report_url=self._report_url(),
                error_message="Failed to fulfill order at factory",
                response_time_ms=latency_ms,
            )

        token = self._signer.sign({
            "vendor": "mock",
            "diner": {"id": diner.id},
            "order": {"id": order.id},
        })
        self.fulfilled.append(order.id)
        logger.info(f"Mock: Order #{order.id} fulfilled for diner {diner.id}")

        return FulfillmentResult(
            success=True,
            jwt=token,
            report_url=self._report_url(),
            response_time_ms=latency_ms,
        )
