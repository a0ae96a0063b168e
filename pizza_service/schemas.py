"""
Pydantic Schemas for Request/Response Validation

JSON bodies use camelCase keys (``franchiseId``, ``totalRevenue``...).
Response models read straight from the service records
(``from_attributes``) and never expose password hashes.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pizza_service.stores.base import Role


class CamelModel(BaseModel):
    """Base model with camelCase aliases; snake_case names accepted too."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class RegisterRequest(CamelModel):
    """Fields are optional so missing ones get the service's own 400 message."""
    name: Optional[str] = Field(None, examples=["pizza diner"])
    email: Optional[str] = Field(None, examples=["d@jwt.com"])
    password: Optional[str] = Field(None, examples=["diner"])


class LoginRequest(CamelModel):
    email: Optional[str] = Field(None, examples=["d@jwt.com"])
    password: Optional[str] = Field(None, examples=["diner"])


class UpdateUserRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class AdminRef(CamelModel):
    email: str


class FranchiseCreate(CamelModel):
    name: Optional[str] = Field(None, examples=["pizzaPocket"])
    admins: List[AdminRef] = Field(default_factory=list)


class StoreCreate(CamelModel):
    name: Optional[str] = Field(None, examples=["SLC"])


class MenuItemCreate(CamelModel):
    title: str = Field(..., min_length=1, examples=["Student"])
    description: str = Field("", examples=["No topping, no sauce, just carbs"])
    image: str = Field("", examples=["pizza9.png"])
    price: float = Field(..., ge=0, examples=[0.0001])


class OrderItemIn(CamelModel):
    menu_id: int = Field(..., examples=[1])
    description: str = Field(..., examples=["Veggie"])
    price: float = Field(..., ge=0, examples=[0.05])


class OrderCreate(CamelModel):
    franchise_id: int = Field(..., examples=[1])
    store_id: int = Field(..., examples=[1])
    items: List[OrderItemIn] = Field(..., min_length=1)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class RoleOut(CamelModel):
    role: Role
    object_id: Optional[int] = None


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    roles: List[RoleOut]


class AuthResponse(BaseModel):
    user: UserOut
    token: str


class UserListResponse(BaseModel):
    users: List[UserOut]
    more: bool


class MessageResponse(BaseModel):
    message: str


class FranchiseAdminOut(CamelModel):
    id: int
    name: str
    email: str


class StoreOut(CamelModel):
    id: int
    franchise_id: int
    name: str
    total_revenue: float = 0.0


class FranchiseOut(CamelModel):
    id: int
    name: str
    admins: List[FranchiseAdminOut]
    stores: List[StoreOut]


class FranchiseListResponse(BaseModel):
    franchises: List[FranchiseOut]
    more: bool


class MenuItemOut(CamelModel):
    id: int
    title: str
    description: str
    image: str
    price: float


class OrderItemOut(CamelModel):
    menu_id: int
    description: str
    price: float


class OrderOut(CamelModel):
    id: int
    franchise_id: int
    store_id: int
    items: List[OrderItemOut]
    date: datetime


class OrderHistoryResponse(CamelModel):
    diner_id: int
    orders: List[OrderOut]
    page: int


class OrderCreateResponse(CamelModel):
    order: OrderOut
    follow_link_to_end_chaos: Optional[str] = None
    jwt: Optional[str] = None


class RootResponse(BaseModel):
    message: str
    version: str


class EndpointDoc(CamelModel):
    method: str
    path: str
    requires_auth: bool
    description: Optional[str] = None


class DocsResponse(BaseModel):
    version: str
    endpoints: List[EndpointDoc]
    config: dict[str, Any]
