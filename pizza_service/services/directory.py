"""
Directory Service

The franchise ownership graph: franchises, the users who administer them,
and their stores.
"""

import logging
from typing import Optional

from pizza_service.core.exceptions import ValidationError
from pizza_service.stores.base import BaseDirectoryStore, Franchise, Page, Store

logger = logging.getLogger(__name__)


class DirectoryService:

    def __init__(self, store: BaseDirectoryStore):
        self._store = store

    async def create_franchise(self, name: Optional[str], admin_emails: list[str]) -> Franchise:
        """
        Create a franchise administered by the users with ``admin_emails``.

        Emails that match no user are dropped without failing the request.
        """
        if not name:
            raise ValidationError("franchise name is required")
        franchise = await self._store.create_franchise(name, [e for e in admin_emails if e])
        dropped = len(set(filter(None, admin_emails))) - len(franchise.admins)
        if dropped:
            logger.info(f"Franchise #{franchise.id}: {dropped} admin email(s) did not resolve")
        logger.info(f"Created franchise #{franchise.id} '{franchise.name}'")
        return franchise

    async def list_franchises(self, page: int, limit: int, name: str = "") -> Page:
        if page < 0 or limit < 1:
            raise ValidationError("page must be >= 0 and limit >= 1")
        # "*" is the conventional "everything" filter from clients
        if name == "*":
            name = ""
        return await self._store.list_franchises(page * limit, limit, name)

    async def franchises_for_user(self, user_id: int) -> list[Franchise]:
        return await self._store.franchises_for_user(user_id)

    async def get_franchise(self, franchise_id: int) -> Optional[Franchise]:
        return await self._store.get_franchise(franchise_id)

    async def delete_franchise(self, franchise_id: int) -> None:
        await self._store.delete_franchise(franchise_id)
        logger.info(f"Deleted franchise #{franchise_id}")

    async def create_store(self, franchise_id: int, name: Optional[str]) -> Store:
        if not name:
            raise ValidationError("store name is required")
        store = await self._store.create_store(franchise_id, name)
        logger.info(f"Created store #{store.id} in franchise #{franchise_id}")
        return store

    async def delete_store(self, franchise_id: int, store_id: int) -> None:
        await self._store.delete_store(franchise_id, store_id)
        logger.info(f"Deleted store #{store_id} from franchise #{franchise_id}")

    async def record_revenue(self, store_id: int, amount: float) -> None:
        await self._store.record_revenue(store_id, amount)
