"""
Fulfillment Service Abstract Base Class

Defines the interface contract for handing a placed order to the pizza
factory. Both MockFulfillmentService and FactoryFulfillmentService implement
these methods, so the order ledger behaves the same whichever is active.

Design Pattern: Strategy Pattern
    - Development runs against a local mock, production against the factory
    - Tests inject a mock with a fixed failure rate

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from pizza_service.stores.base import Order, User


@dataclass
class FulfillmentResult:
    """
    Standardized result from the factory.

    Attributes:
        success: Whether the factory accepted the order
        jwt: Signed verification artifact for the order
        report_url: Link reported back to the diner (set on failure too)
        error_message: Error description if fulfillment failed
        response_time_ms: Time taken by the factory call
    """
    success: bool
    jwt: Optional[str] = None
    report_url: Optional[str] = None
    error_message: Optional[str] = None
    response_time_ms: float = 0.0


class BaseFulfillmentService(ABC):
    """
    Abstract base class for fulfillment services.

    Implementations never raise for a failed fulfillment; they return a
    FulfillmentResult with ``success=False`` so the caller decides how to
    report it.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the provider (e.g. "mock", "factory")."""
        pass

    @abstractmethod
    async def fulfill(self, diner: User, order: Order) -> FulfillmentResult:
        """
        Ask the factory to make an order.

        Args:
            diner: The user who placed the order
            order: The persisted order

        Returns:
            FulfillmentResult: Standardized result object
        """
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None
