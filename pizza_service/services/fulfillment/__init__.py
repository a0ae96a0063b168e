"""
Fulfillment Service Factory

Provides a single entry point for obtaining a fulfillment service instance.
The rest of the application stays agnostic about which implementation is
being used.

Environment Switching:
    - ENV_MODE=development → MockFulfillmentService (no network calls)
    - ENV_MODE=staging → FactoryFulfillmentService (test factory)
    - ENV_MODE=production → FactoryFulfillmentService (live factory)
"""

import logging

from pizza_service.core.config import Settings
from pizza_service.services.fulfillment.base import (
    BaseFulfillmentService,
    FulfillmentResult,
)
from pizza_service.services.fulfillment.factory import FactoryFulfillmentService
from pizza_service.services.fulfillment.mock import MockFulfillmentService

logger = logging.getLogger(__name__)


def build_fulfillment_service(settings: Settings) -> BaseFulfillmentService:
    """
    Build the configured fulfillment service.

    Called once per process when the service container is assembled.
    """
    if settings.is_development:
        logger.info("Fulfillment Service: Using MockFulfillmentService (development mode)")
        return MockFulfillmentService()

    logger.info(
        f"Fulfillment Service: Using FactoryFulfillmentService "
        f"({settings.env_mode.value} mode)"
    )
    return FactoryFulfillmentService(
        base_url=settings.factory_url,
        api_key=settings.factory_api_key,
        timeout=settings.factory_timeout_seconds,
    )


__all__ = [
    "build_fulfillment_service",
    "BaseFulfillmentService",
    "FulfillmentResult",
    "MockFulfillmentService",
    "FactoryFulfillmentService",
]
