"""
SQLAlchemy Database Models

Tables behind the SQL store backend:
- Users, their role grants and their logged-in tokens
- Franchises, franchise admins and stores
- The menu, diner orders and order items

Relations are plain foreign keys; the stores query related rows
explicitly instead of relying on lazy loading.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, Enum, ForeignKey
from sqlalchemy.sql import func
from pizza_service.database import Base
from pizza_service.stores.base import Role


class UserModel(Base):
    """Registered users. Emails are unique."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User #{self.id} - {self.email}>"


class UserRoleModel(Base):
    """
    One role grant per row.

    ``object_id`` is only set for scoped roles (franchisee → franchise id).
    """
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(Role, name="user_role"), nullable=False)
    object_id = Column(Integer, nullable=True, index=True)


class AuthTokenModel(Base):
    """
    Logged-in session tokens.

    Only the SHA-256 digest of a token is stored.
    """
    __tablename__ = "auth_tokens"

    token_hash = Column(String(64), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class FranchiseModel(Base):
    __tablename__ = "franchises"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Franchise #{self.id} - {self.name}>"


class FranchiseAdminModel(Base):
    __tablename__ = "franchise_admins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)


class StoreModel(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # No FK: a store racing its franchise's deletion may outlive it
    franchise_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    total_revenue = Column(Float, nullable=False, default=0.0)


class MenuItemModel(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    image = Column(String(500), nullable=False, default="")
    price = Column(Float, nullable=False)


class OrderModel(Base):
    """Diner orders. Rows are never updated or deleted."""
    __tablename__ = "diner_orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    diner_id = Column(Integer, nullable=False, index=True)
    franchise_id = Column(Integer, nullable=False)
    store_id = Column(Integer, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Order #{self.id} - diner {self.diner_id}>"


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("diner_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_id = Column(Integer, nullable=False)
    description = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)
