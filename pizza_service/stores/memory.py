"""
In-Memory Store Implementation

Keeps every record in process memory. Used in development mode
(ENV_MODE=development) and by the test suite to:
    - Run the complete service without a database
    - Exercise the authorization core in isolation
    - Reset all state by building a new MemoryState

Concurrency:
    All four stores share one MemoryState guarded by a single re-entrant
    lock. No critical section awaits, so each store call is atomic with
    respect to every other call, including user deletion and session
    revocation, which happen in one section.

Records handed out are copies; mutating them never changes stored state.
"""

import copy
import itertools
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from pizza_service.core.exceptions import ConflictError, NotFoundError
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

logger = logging.getLogger(__name__)


def glob_matches(pattern: str, value: str) -> bool:
    """
    Search a value for a ``*`` glob anywhere in it, case-insensitive.

    An empty pattern or a lone ``*`` matches everything.
    """
    if not pattern or pattern == "*":
        return True
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.search(regex, value or "", flags=re.IGNORECASE) is not None


def paginate(rows: list, offset: int, limit: int) -> Page:
    window = rows[offset:offset + limit]
    return Page(items=copy.deepcopy(window), more=len(rows) > offset + limit)


@dataclass
class MemoryState:
    """Shared state behind the in-memory stores."""
    lock: threading.RLock = field(default_factory=threading.RLock)
    ids: itertools.count = field(default_factory=lambda: itertools.count(1))
    users: dict[int, User] = field(default_factory=dict)
    tokens: dict[str, int] = field(default_factory=dict)
    franchises: dict[int, Franchise] = field(default_factory=dict)
    stores: dict[int, Store] = field(default_factory=dict)
    menu: list[MenuItem] = field(default_factory=list)
    orders: dict[int, list[Order]] = field(default_factory=dict)

    def next_id(self) -> int:
        return next(self.ids)

    def user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)


class MemoryCredentialStore(BaseCredentialStore):

    def __init__(self, state: MemoryState):
        self._state = state

    async def add_user(self, name, email, password_hash, roles) -> User:
        with self._state.lock:
            if self._state.user_by_email(email) is not None:
                raise ConflictError("email already registered")
            user = User(
                id=self._state.next_id(),
                name=name,
                email=email,
                password_hash=password_hash,
                roles=list(roles),
            )
            self._state.users[user.id] = user
            return copy.deepcopy(user)

    async def get_user(self, user_id: int) -> Optional[User]:
        with self._state.lock:
            return copy.deepcopy(self._state.users.get(user_id))

    async def find_by_email(self, email: str) -> Optional[User]:
        with self._state.lock:
            return copy.deepcopy(self._state.user_by_email(email))

    async def update_user(self, user_id, name=None, email=None, password_hash=None) -> User:
        with self._state.lock:
            user = self._state.users.get(user_id)
            if user is None:
                raise NotFoundError("user not found")
            if email is not None and email != user.email:
                if self._state.user_by_email(email) is not None:
                    raise ConflictError("email already registered")
                user.email = email
            if name is not None:
                user.name = name
            if password_hash is not None:
                user.password_hash = password_hash
            for franchise in self._state.franchises.values():
                for admin in franchise.admins:
                    if admin.id == user_id:
                        admin.name, admin.email = user.name, user.email
            return copy.deepcopy(user)

    async def delete_user(self, user_id: int) -> None:
        with self._state.lock:
            self._state.users.pop(user_id, None)
            revoked = [t for t, uid in self._state.tokens.items() if uid == user_id]
            for token in revoked:
                del self._state.tokens[token]
            for franchise in self._state.franchises.values():
                franchise.admins = [a for a in franchise.admins if a.id != user_id]
            logger.debug(f"Deleted user {user_id}, revoked {len(revoked)} session(s)")

    async def list_users(self, offset: int, limit: int, pattern: str) -> Page:
        with self._state.lock:
            matching = [
                user for user in sorted(self._state.users.values(), key=lambda u: u.id)
                if glob_matches(pattern, user.name) or glob_matches(pattern, user.email)
            ]
            return paginate(matching, offset, limit)


class MemorySessionStore(BaseSessionStore):

    def __init__(self, state: MemoryState):
        self._state = state

    async def add(self, token: str, user_id: int) -> None:
        with self._state.lock:
            self._state.tokens[token] = user_id

    async def remove(self, token: str) -> None:
        with self._state.lock:
            self._state.tokens.pop(token, None)

    async def lookup(self, token: str) -> Optional[int]:
        with self._state.lock:
            return self._state.tokens.get(token)


class MemoryDirectoryStore(BaseDirectoryStore):

    def __init__(self, state: MemoryState):
        self._state = state

    async def create_franchise(self, name: str, admin_emails: list[str]) -> Franchise:
        with self._state.lock:
            franchise = Franchise(id=self._state.next_id(), name=name)
            for email in admin_emails:
                user = self._state.user_by_email(email)
                if user is None or franchise.has_admin(user.id):
                    continue
                franchise.admins.append(FranchiseAdmin(id=user.id, name=user.name, email=user.email))
                user.roles.append(RoleGrant.scoped(Role.FRANCHISEE, franchise.id))
            self._state.franchises[franchise.id] = franchise
            return copy.deepcopy(franchise)

    async def get_franchise(self, franchise_id: int) -> Optional[Franchise]:
        with self._state.lock:
            return copy.deepcopy(self._state.franchises.get(franchise_id))

    async def list_franchises(self, offset: int, limit: int, name: str) -> Page:
        with self._state.lock:
            matching = [
                f for f in sorted(self._state.franchises.values(), key=lambda f: f.id)
                if not name or name in f.name
            ]
            return paginate(matching, offset, limit)

    async def franchises_for_user(self, user_id: int) -> list[Franchise]:
        with self._state.lock:
            return [
                copy.deepcopy(f)
                for f in sorted(self._state.franchises.values(), key=lambda f: f.id)
                if f.has_admin(user_id)
            ]

    async def delete_franchise(self, franchise_id: int) -> None:
        with self._state.lock:
            franchise = self._state.franchises.pop(franchise_id, None)
            if franchise is None:
                return
            for store in franchise.stores:
                self._state.stores.pop(store.id, None)
            revoked = RoleGrant.scoped(Role.FRANCHISEE, franchise_id)
            for admin in franchise.admins:
                user = self._state.users.get(admin.id)
                if user is not None:
                    user.roles = [grant for grant in user.roles if grant != revoked]

    async def create_store(self, franchise_id: int, name: str) -> Store:
        with self._state.lock:
            store = Store(id=self._state.next_id(), franchise_id=franchise_id, name=name)
            franchise = self._state.franchises.get(franchise_id)
            if franchise is not None:
                franchise.stores.append(store)
            self._state.stores[store.id] = store
            return copy.deepcopy(store)

    async def delete_store(self, franchise_id: int, store_id: int) -> None:
        with self._state.lock:
            store = self._state.stores.get(store_id)
            if store is None or store.franchise_id != franchise_id:
                return
            franchise = self._state.franchises.get(franchise_id)
            if franchise is not None:
                franchise.stores = [s for s in franchise.stores if s.id != store_id]
            del self._state.stores[store_id]

    async def record_revenue(self, store_id: int, amount: float) -> None:
        with self._state.lock:
            store = self._state.stores.get(store_id)
            if store is not None:
                store.total_revenue += amount


class MemoryLedgerStore(BaseLedgerStore):

    def __init__(self, state: MemoryState):
        self._state = state

    async def get_menu(self) -> list[MenuItem]:
        with self._state.lock:
            return copy.deepcopy(self._state.menu)

    async def add_menu_item(self, title, description, image, price) -> MenuItem:
        with self._state.lock:
            item = MenuItem(
                id=self._state.next_id(),
                title=title,
                description=description,
                image=image,
                price=price,
            )
            self._state.menu.append(item)
            return copy.deepcopy(item)

    async def add_order(self, diner_id, franchise_id, store_id, items) -> Order:
        with self._state.lock:
            order = Order(
                id=self._state.next_id(),
                diner_id=diner_id,
                franchise_id=franchise_id,
                store_id=store_id,
                items=[OrderItem(i.menu_id, i.description, i.price) for i in items],
                date=datetime.now(timezone.utc),
            )
            self._state.orders.setdefault(diner_id, []).append(order)
            return copy.deepcopy(order)

    async def get_orders(self, diner_id: int, offset: int, limit: int) -> Page:
        with self._state.lock:
            return paginate(self._state.orders.get(diner_id, []), offset, limit)


def build_memory_stores(state: Optional[MemoryState] = None) -> Stores:
    """Build the four in-memory stores over one shared state."""
    state = state or MemoryState()
    return Stores(
        credentials=MemoryCredentialStore(state),
        sessions=MemorySessionStore(state),
        directory=MemoryDirectoryStore(state),
        ledger=MemoryLedgerStore(state),
    )
