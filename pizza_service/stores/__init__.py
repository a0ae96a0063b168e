"""
Store Backends

Two interchangeable backends implement the store interfaces:
    - memory: process-local state (development, tests)
    - sql: SQLAlchemy async over PostgreSQL (staging, production)

Usage:
    from pizza_service.stores import build_memory_stores

    stores = build_memory_stores()
    user = await stores.credentials.find_by_email("d@jwt.com")
"""

from pizza_service.stores.base import (
    BaseCredentialStore,
    BaseDirectoryStore,
    BaseLedgerStore,
    BaseSessionStore,
    Franchise,
    FranchiseAdmin,
    MenuItem,
    Order,
    OrderItem,
    Page,
    Role,
    RoleGrant,
    Store,
    Stores,
    User,
)
from pizza_service.stores.memory import MemoryState, build_memory_stores
from pizza_service.stores.sql import build_sql_stores

__all__ = [
    "BaseCredentialStore",
    "BaseDirectoryStore",
    "BaseLedgerStore",
    "BaseSessionStore",
    "Franchise",
    "FranchiseAdmin",
    "MenuItem",
    "Order",
    "OrderItem",
    "Page",
    "Role",
    "RoleGrant",
    "Store",
    "Stores",
    "User",
    "MemoryState",
    "build_memory_stores",
    "build_sql_stores",
]
