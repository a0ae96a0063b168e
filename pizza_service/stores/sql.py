"""
SQLAlchemy Store Implementation

Production implementation over the async SQLAlchemy engine.
Used when ENV_MODE=production or ENV_MODE=staging.

Every public call runs in its own transaction. Email uniqueness is backed
by a unique index, so a racing duplicate registration fails with a
ConflictError instead of producing two accounts. User deletion removes the
user's tokens in the same transaction.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pizza_service.core.exceptions import ConflictError, NotFoundError
from pizza_service.models import (
    AuthTokenModel,
    FranchiseAdminModel,
    FranchiseModel,
    MenuItemModel,
    OrderItemModel,
    OrderModel,
    StoreModel,
    UserModel,
    UserRoleModel,
)
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


def glob_to_like(pattern: str) -> str:
    """Translate a ``*`` glob into an unanchored LIKE pattern escaped with backslashes."""
    escaped = pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return "%" + escaped.replace("*", "%") + "%"


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _to_store(row: StoreModel) -> Store:
    return Store(
        id=row.id,
        franchise_id=row.franchise_id,
        name=row.name,
        total_revenue=row.total_revenue or 0.0,
    )


class SqlStore:
    """Shared session handling for the SQL stores."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker


class SqlCredentialStore(SqlStore, BaseCredentialStore):

    async def _hydrate(self, session: AsyncSession, rows: list[UserModel]) -> list[User]:
        if not rows:
            return []
        grants = await session.scalars(
            select(UserRoleModel)
            .where(UserRoleModel.user_id.in_([row.id for row in rows]))
            .order_by(UserRoleModel.id)
        )
        roles_by_user: dict[int, list[RoleGrant]] = {}
        for grant in grants:
            roles_by_user.setdefault(grant.user_id, []).append(
                RoleGrant(role=grant.role, object_id=grant.object_id)
            )
        return [
            User(
                id=row.id,
                name=row.name,
                email=row.email,
                password_hash=row.password_hash,
                roles=roles_by_user.get(row.id, []),
            )
            for row in rows
        ]

    async def _hydrate_one(self, session: AsyncSession, row: Optional[UserModel]) -> Optional[User]:
        if row is None:
            return None
        return (await self._hydrate(session, [row]))[0]

    async def add_user(self, name, email, password_hash, roles) -> User:
        try:
            async with self._session_maker() as session, session.begin():
                existing = await session.scalar(select(UserModel.id).where(UserModel.email == email))
                if existing is not None:
                    raise ConflictError("email already registered")
                row = UserModel(name=name, email=email, password_hash=password_hash)
                session.add(row)
                await session.flush()
                for grant in roles:
                    session.add(UserRoleModel(user_id=row.id, role=grant.role, object_id=grant.object_id))
                await session.flush()
                return await self._hydrate_one(session, row)
        except IntegrityError as e:
            logger.info(f"Duplicate registration rejected for {email}")
            raise ConflictError("email already registered") from e

    async def get_user(self, user_id: int) -> Optional[User]:
        async with self._session_maker() as session:
            return await self._hydrate_one(session, await session.get(UserModel, user_id))

    async def find_by_email(self, email: str) -> Optional[User]:
        async with self._session_maker() as session:
            row = await session.scalar(select(UserModel).where(UserModel.email == email))
            return await self._hydrate_one(session, row)

    async def update_user(self, user_id, name=None, email=None, password_hash=None) -> User:
        try:
            async with self._session_maker() as session, session.begin():
                row = await session.get(UserModel, user_id)
                if row is None:
                    raise NotFoundError("user not found")
                if email is not None and email != row.email:
                    taken = await session.scalar(select(UserModel.id).where(UserModel.email == email))
                    if taken is not None:
                        raise ConflictError("email already registered")
                    row.email = email
                if name is not None:
                    row.name = name
                if password_hash is not None:
                    row.password_hash = password_hash
                await session.flush()
                return await self._hydrate_one(session, row)
        except IntegrityError as e:
            raise ConflictError("email already registered") from e

    async def delete_user(self, user_id: int) -> None:
        async with self._session_maker() as session, session.begin():
            await session.execute(delete(AuthTokenModel).where(AuthTokenModel.user_id == user_id))
            await session.execute(delete(FranchiseAdminModel).where(FranchiseAdminModel.user_id == user_id))
            await session.execute(delete(UserRoleModel).where(UserRoleModel.user_id == user_id))
            await session.execute(delete(UserModel).where(UserModel.id == user_id))

    async def list_users(self, offset: int, limit: int, pattern: str) -> Page:
        stmt = select(UserModel).order_by(UserModel.id)
        if pattern and pattern != "*":
            like = glob_to_like(pattern)
            stmt = stmt.where(or_(
                UserModel.name.ilike(like, escape="\\"),
                UserModel.email.ilike(like, escape="\\"),
            ))
        async with self._session_maker() as session:
            rows = list(await session.scalars(stmt.offset(offset).limit(limit + 1)))
            users = await self._hydrate(session, rows[:limit])
            return Page(items=users, more=len(rows) > limit)


class SqlSessionStore(SqlStore, BaseSessionStore):

    async def add(self, token: str, user_id: int) -> None:
        async with self._session_maker() as session, session.begin():
            await session.merge(AuthTokenModel(token_hash=token_digest(token), user_id=user_id))

    async def remove(self, token: str) -> None:
        async with self._session_maker() as session, session.begin():
            await session.execute(
                delete(AuthTokenModel).where(AuthTokenModel.token_hash == token_digest(token))
            )

    async def lookup(self, token: str) -> Optional[int]:
        async with self._session_maker() as session:
            return await session.scalar(
                select(AuthTokenModel.user_id).where(AuthTokenModel.token_hash == token_digest(token))
            )


class SqlDirectoryStore(SqlStore, BaseDirectoryStore):

    async def _hydrate(self, session: AsyncSession, rows: list[FranchiseModel]) -> list[Franchise]:
        if not rows:
            return []
        ids = [row.id for row in rows]
        franchises = {row.id: Franchise(id=row.id, name=row.name) for row in rows}

        admins = await session.execute(
            select(FranchiseAdminModel.franchise_id, UserModel.id, UserModel.name, UserModel.email)
            .join(UserModel, UserModel.id == FranchiseAdminModel.user_id)
            .where(FranchiseAdminModel.franchise_id.in_(ids))
            .order_by(FranchiseAdminModel.id)
        )
        for franchise_id, user_id, name, email in admins:
            franchises[franchise_id].admins.append(FranchiseAdmin(id=user_id, name=name, email=email))

        stores = await session.scalars(
            select(StoreModel).where(StoreModel.franchise_id.in_(ids)).order_by(StoreModel.id)
        )
        for store in stores:
            franchises[store.franchise_id].stores.append(_to_store(store))

        return [franchises[i] for i in ids]

    async def create_franchise(self, name: str, admin_emails: list[str]) -> Franchise:
        async with self._session_maker() as session, session.begin():
            row = FranchiseModel(name=name)
            session.add(row)
            await session.flush()

            seen: set[int] = set()
            for email in admin_emails:
                user_id = await session.scalar(select(UserModel.id).where(UserModel.email == email))
                if user_id is None or user_id in seen:
                    continue
                seen.add(user_id)
                session.add(FranchiseAdminModel(franchise_id=row.id, user_id=user_id))
                session.add(UserRoleModel(user_id=user_id, role=Role.FRANCHISEE, object_id=row.id))
            await session.flush()

            return (await self._hydrate(session, [row]))[0]

    async def get_franchise(self, franchise_id: int) -> Optional[Franchise]:
        async with self._session_maker() as session:
            row = await session.get(FranchiseModel, franchise_id)
            if row is None:
                return None
            return (await self._hydrate(session, [row]))[0]

    async def list_franchises(self, offset: int, limit: int, name: str) -> Page:
        stmt = select(FranchiseModel).order_by(FranchiseModel.id)
        if name:
            stmt = stmt.where(FranchiseModel.name.contains(name, autoescape=True))
        async with self._session_maker() as session:
            rows = list(await session.scalars(stmt.offset(offset).limit(limit + 1)))
            franchises = await self._hydrate(session, rows[:limit])
            return Page(items=franchises, more=len(rows) > limit)

    async def franchises_for_user(self, user_id: int) -> list[Franchise]:
        async with self._session_maker() as session:
            rows = list(await session.scalars(
                select(FranchiseModel)
                .join(FranchiseAdminModel, FranchiseAdminModel.franchise_id == FranchiseModel.id)
                .where(FranchiseAdminModel.user_id == user_id)
                .order_by(FranchiseModel.id)
            ))
            return await self._hydrate(session, rows)

    async def delete_franchise(self, franchise_id: int) -> None:
        async with self._session_maker() as session, session.begin():
            await session.execute(delete(StoreModel).where(StoreModel.franchise_id == franchise_id))
            await session.execute(
                delete(FranchiseAdminModel).where(FranchiseAdminModel.franchise_id == franchise_id)
            )
            await session.execute(
                delete(UserRoleModel).where(
                    UserRoleModel.role == Role.FRANCHISEE,
                    UserRoleModel.object_id == franchise_id,
                )
            )
            await session.execute(delete(FranchiseModel).where(FranchiseModel.id == franchise_id))

    async def create_store(self, franchise_id: int, name: str) -> Store:
        async with self._session_maker() as session, session.begin():
            row = StoreModel(franchise_id=franchise_id, name=name, total_revenue=0.0)
            session.add(row)
            await session.flush()
            return _to_store(row)

    async def delete_store(self, franchise_id: int, store_id: int) -> None:
        async with self._session_maker() as session, session.begin():
            await session.execute(
                delete(StoreModel).where(StoreModel.id == store_id, StoreModel.franchise_id == franchise_id)
            )

    async def record_revenue(self, store_id: int, amount: float) -> None:
        async with self._session_maker() as session, session.begin():
            await session.execute(
                update(StoreModel)
                .where(StoreModel.id == store_id)
                .values(total_revenue=StoreModel.total_revenue + amount)
            )


class SqlLedgerStore(SqlStore, BaseLedgerStore):

    async def _hydrate(self, session: AsyncSession, rows: list[OrderModel]) -> list[Order]:
        if not rows:
            return []
        items = await session.scalars(
            select(OrderItemModel)
            .where(OrderItemModel.order_id.in_([row.id for row in rows]))
            .order_by(OrderItemModel.id)
        )
        items_by_order: dict[int, list[OrderItem]] = {}
        for item in items:
            items_by_order.setdefault(item.order_id, []).append(
                OrderItem(menu_id=item.menu_id, description=item.description, price=item.price)
            )
        return [
            Order(
                id=row.id,
                diner_id=row.diner_id,
                franchise_id=row.franchise_id,
                store_id=row.store_id,
                items=items_by_order.get(row.id, []),
                date=row.date,
            )
            for row in rows
        ]

    async def get_menu(self) -> list[MenuItem]:
        async with self._session_maker() as session:
            rows = await session.scalars(select(MenuItemModel).order_by(MenuItemModel.id))
            return [
                MenuItem(id=r.id, title=r.title, description=r.description, image=r.image, price=r.price)
                for r in rows
            ]

    async def add_menu_item(self, title, description, image, price) -> MenuItem:
        async with self._session_maker() as session, session.begin():
            row = MenuItemModel(title=title, description=description, image=image, price=price)
            session.add(row)
            await session.flush()
            return MenuItem(id=row.id, title=title, description=description, image=image, price=price)

    async def add_order(self, diner_id, franchise_id, store_id, items) -> Order:
        async with self._session_maker() as session, session.begin():
            row = OrderModel(
                diner_id=diner_id,
                franchise_id=franchise_id,
                store_id=store_id,
                date=datetime.now(timezone.utc),
            )
            session.add(row)
            await session.flush()
            for item in items:
                session.add(OrderItemModel(
                    order_id=row.id,
                    menu_id=item.menu_id,
                    description=item.description,
                    price=item.price,
                ))
            await session.flush()
            return (await self._hydrate(session, [row]))[0]

    async def get_orders(self, diner_id: int, offset: int, limit: int) -> Page:
        async with self._session_maker() as session:
            rows = list(await session.scalars(
                select(OrderModel)
                .where(OrderModel.diner_id == diner_id)
                .order_by(OrderModel.id)
                .offset(offset)
                .limit(limit + 1)
            ))
            orders = await self._hydrate(session, rows[:limit])
            return Page(items=orders, more=len(rows) > limit)


def build_sql_stores(session_maker: async_sessionmaker[AsyncSession]) -> Stores:
    """Build the four SQL stores over one session factory."""
    return Stores(
        credentials=SqlCredentialStore(session_maker),
        sessions=SqlSessionStore(session_maker),
        directory=SqlDirectoryStore(session_maker),
        ledger=SqlLedgerStore(session_maker),
    )
