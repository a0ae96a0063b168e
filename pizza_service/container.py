"""
Service Container

Assembles the stores and domain services once per process. The FastAPI app
keeps the container on ``app.state`` and hands services to routes through
dependencies, so tests can build a container over in-memory stores and a
mock factory and pass it straight to ``create_app``.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from pizza_service.core.config import Settings
from pizza_service.core.exceptions import ConflictError
from pizza_service.core.security import PasswordHasher, TokenSigner
from pizza_service.database import create_engine, create_session_maker, init_db
from pizza_service.services.credentials import CredentialService
from pizza_service.services.directory import DirectoryService
from pizza_service.services.fulfillment import BaseFulfillmentService, build_fulfillment_service
from pizza_service.services.ledger import OrderLedger
from pizza_service.services.sessions import SessionRegistry
from pizza_service.stores import Role, RoleGrant, Stores, build_memory_stores, build_sql_stores

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    stores: Stores
    fulfillment: BaseFulfillmentService
    credentials: CredentialService
    sessions: SessionRegistry
    directory: DirectoryService
    ledger: OrderLedger
    engine: Optional[AsyncEngine] = field(default=None)

    @property
    def storage_backend(self) -> str:
        return "sql" if self.engine is not None else "memory"

    async def startup(self) -> None:
        """Create tables (SQL backend) and seed the default admin."""
        if self.engine is not None:
            await init_db(self.engine)
        await self.bootstrap_admin()

    async def shutdown(self) -> None:
        await self.fulfillment.close()
        if self.engine is not None:
            await self.engine.dispose()

    async def bootstrap_admin(self) -> None:
        """Create the configured default admin unless that email already exists."""
        email = self.settings.default_admin_email
        password = self.settings.default_admin_password
        if not email or not password:
            return
        if await self.stores.credentials.find_by_email(email) is not None:
            logger.debug(f"Default admin {email} already present")
            return
        try:
            user = await self.credentials.create_user(
                self.settings.default_admin_name,
                email,
                password,
                [RoleGrant(Role.ADMIN)],
            )
        except ConflictError:
            # Another worker seeded it first
            return
        logger.info(f"Seeded default admin #{user.id} ({email})")


def build_container(
    settings: Settings,
    stores: Optional[Stores] = None,
    fulfillment: Optional[BaseFulfillmentService] = None,
) -> ServiceContainer:
    """
    Build every service for the given settings.

    Args:
        settings: Application settings
        stores: Stores to use instead of the configured backend
        fulfillment: Fulfillment service to use instead of the configured one
    """
    engine = None
    if stores is None:
        if settings.use_real_services:
            engine = create_engine(settings.database_url, echo=settings.database_echo)
            stores = build_sql_stores(create_session_maker(engine))
            logger.info(f"Stores: SQL ({settings.database_host})")
        else:
            stores = build_memory_stores()
            logger.info("Stores: in-memory (development mode)")

    fulfillment = fulfillment or build_fulfillment_service(settings)

    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    signer = TokenSigner(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl_minutes=settings.jwt_ttl_minutes,
    )
    directory = DirectoryService(stores.directory)

    return ServiceContainer(
        settings=settings,
        stores=stores,
        fulfillment=fulfillment,
        credentials=CredentialService(stores.credentials, hasher),
        sessions=SessionRegistry(stores.sessions, stores.credentials, signer),
        directory=directory,
        ledger=OrderLedger(
            stores.ledger,
            directory,
            fulfillment,
            page_size=settings.orders_page_size,
            fulfillment_timeout=settings.factory_timeout_seconds,
        ),
        engine=engine,
    )
