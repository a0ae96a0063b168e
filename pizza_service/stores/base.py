"""
Store Abstract Base Classes

Defines the records the service works with and the interface contract for
every storage backend. The in-memory backend (development and tests) and
the SQLAlchemy backend (staging and production) both implement these
classes, so the domain services never know which one is active.

Design Pattern: Strategy Pattern
    - Backends are swapped by configuration at startup
    - Tests substitute the in-memory backend without touching services

Version: 1.0.0
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


# =============================================================================
# RECORDS
# =============================================================================

class Role(str, enum.Enum):
    """Roles a user can hold."""
    DINER = "diner"
    ADMIN = "admin"
    FRANCHISEE = "franchisee"


@dataclass(frozen=True)
class RoleGrant:
    """
    A role held by a user.

    Global roles (diner, admin) carry no object id. The franchisee role is
    scoped: ``object_id`` is the id of the franchise it applies to.
    """
    role: Role
    object_id: Optional[int] = None

    @classmethod
    def scoped(cls, role: Role, object_id: int) -> "RoleGrant":
        return cls(role=role, object_id=object_id)

    @property
    def is_scoped(self) -> bool:
        return self.object_id is not None


@dataclass
class User:
    """
    A registered user.

    ``password_hash`` never leaves the service; response schemas omit it.
    """
    id: int
    name: str
    email: str
    password_hash: str
    roles: list[RoleGrant] = field(default_factory=list)

    def has_role(self, role: Role) -> bool:
        return any(grant.role == role for grant in self.roles)


@dataclass
class FranchiseAdmin:
    id: int
    name: str
    email: str


@dataclass
class Store:
    id: int
    franchise_id: int
    name: str
    total_revenue: float = 0.0


@dataclass
class Franchise:
    id: int
    name: str
    admins: list[FranchiseAdmin] = field(default_factory=list)
    stores: list[Store] = field(default_factory=list)

    def has_admin(self, user_id: int) -> bool:
        return any(admin.id == user_id for admin in self.admins)


@dataclass
class MenuItem:
    id: int
    title: str
    description: str
    image: str
    price: float


@dataclass
class OrderItem:
    menu_id: int
    description: str
    price: float


@dataclass
class Order:
    """A placed order. Immutable once stored."""
    id: int
    diner_id: int
    franchise_id: int
    store_id: int
    items: list[OrderItem]
    date: datetime

    @property
    def total(self) -> float:
        return sum(item.price for item in self.items)


@dataclass
class Page:
    """One page of a listing, plus whether a further page has rows."""
    items: list
    more: bool


# =============================================================================
# STORE INTERFACES
# =============================================================================

class BaseCredentialStore(ABC):
    """User identities and their role grants."""

    @abstractmethod
    async def add_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        roles: list[RoleGrant],
    ) -> User:
        """
        Insert a user.

        Raises:
            ConflictError: If the email is already registered
        """
        pass

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def update_user(
        self,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> User:
        """
        Apply a partial update; None fields are preserved.

        Raises:
            NotFoundError: If the user does not exist
            ConflictError: If the new email belongs to another user
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: int) -> None:
        """Remove the user and every session token issued to them, atomically."""
        pass

    @abstractmethod
    async def list_users(self, offset: int, limit: int, pattern: str) -> Page:
        """
        List users ordered by id.

        Args:
            offset: Rows to skip
            limit: Maximum rows returned
            pattern: Glob on name or email (``*`` = any substring, case-insensitive)
        """
        pass


class BaseSessionStore(ABC):
    """Server-side record of logged-in tokens."""

    @abstractmethod
    async def add(self, token: str, user_id: int) -> None:
        pass

    @abstractmethod
    async def remove(self, token: str) -> None:
        """Forget a token. Unknown tokens are ignored."""
        pass

    @abstractmethod
    async def lookup(self, token: str) -> Optional[int]:
        """Return the user id a token was issued to, if it is logged in."""
        pass


class BaseDirectoryStore(ABC):
    """Franchises, their admins and their stores."""

    @abstractmethod
    async def create_franchise(self, name: str, admin_emails: list[str]) -> Franchise:
        """
        Create a franchise.

        Admin emails that match no user are dropped. Each resolved admin is
        granted the franchisee role scoped to the new franchise.
        """
        pass

    @abstractmethod
    async def get_franchise(self, franchise_id: int) -> Optional[Franchise]:
        pass

    @abstractmethod
    async def list_franchises(self, offset: int, limit: int, name: str) -> Page:
        """List franchises whose name contains ``name`` (case-sensitive)."""
        pass

    @abstractmethod
    async def franchises_for_user(self, user_id: int) -> list[Franchise]:
        pass

    @abstractmethod
    async def delete_franchise(self, franchise_id: int) -> None:
        pass

    @abstractmethod
    async def create_store(self, franchise_id: int, name: str) -> Store:
        pass

    @abstractmethod
    async def delete_store(self, franchise_id: int, store_id: int) -> None:
        pass

    @abstractmethod
    async def record_revenue(self, store_id: int, amount: float) -> None:
        """Add an amount to a store's revenue. Unknown stores are ignored."""
        pass


class BaseLedgerStore(ABC):
    """The menu catalog and diners' order history."""

    @abstractmethod
    async def get_menu(self) -> list[MenuItem]:
        pass

    @abstractmethod
    async def add_menu_item(
        self,
        title: str,
        description: str,
        image: str,
        price: float,
    ) -> MenuItem:
        pass

    @abstractmethod
    async def add_order(
        self,
        diner_id: int,
        franchise_id: int,
        store_id: int,
        items: list[OrderItem],
    ) -> Order:
        pass

    @abstractmethod
    async def get_orders(self, diner_id: int, offset: int, limit: int) -> Page:
        """A diner's orders in insertion order."""
        pass


@dataclass
class Stores:
    """The four stores a running service is built from."""
    credentials: BaseCredentialStore
    sessions: BaseSessionStore
    directory: BaseDirectoryStore
    ledger: BaseLedgerStore
