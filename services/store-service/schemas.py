"""Pydantic schemas for request/response validation."""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Ids are 32-bit integer primary keys
MAX_ID = 2**31 - 1
RecordId = Annotated[int, Field(ge=1, le=MAX_ID)]


class StrictRequest(BaseModel):
    """Request bodies reject unknown fields."""
    model_config = ConfigDict(extra="forbid")


class CredentialsRequest(StrictRequest):
    """Schema for signup and login requests."""
    user: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Schema for login response."""
    auth_token: str


class UpdateAccountRequest(StrictRequest):
    """Schema for renaming an account."""
    user: str = Field(..., min_length=1)


class DeleteRequest(StrictRequest):
    """Schema for collection DELETE requests."""
    id: RecordId


class AdminAccountResponse(BaseModel):
    """Admin account view. Credentials and tokens are never included."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    created_at: datetime


class UserAccountResponse(BaseModel):
    """User account view with cart and order history ids."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    items: List[int]
    orders: List[int] = Field(validation_alias=AliasChoices("order_ids", "orders"))
    created_at: datetime


class ItemResponse(BaseModel):
    """Schema for item response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    desc: str = Field(validation_alias=AliasChoices("description", "desc"))
    price: float
    created_at: datetime


class CreateItemRequest(StrictRequest):
    """Schema for creating or updating an item."""
    name: str = Field(..., min_length=1)
    desc: Optional[str] = ""
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class CartItemRequest(StrictRequest):
    """Schema for cart add/remove requests."""
    item_id: RecordId


class CartResponse(BaseModel):
    """Schema for cart response."""
    items: List[ItemResponse]
    total: float


class OrderResponse(BaseModel):
    """Schema for order response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    items: List[int]
    total: float
    status: str
    created_at: datetime


class CheckoutResponse(BaseModel):
    """Schema for checkout response."""
    order: OrderResponse
    status: str


class CreateOrderRequest(StrictRequest):
    """Schema for admin order creation."""
    account_id: RecordId
    items: List[RecordId] = []
    total: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class UpdateOrderRequest(StrictRequest):
    """Schema for order status update."""
    status: str = Field(..., min_length=1)


class DashboardResponse(BaseModel):
    """Schema for the admin dashboard."""
    admins: List[AdminAccountResponse]
    total_admins: int
    users: List[UserAccountResponse]
    total_users: int
    items: List[ItemResponse]
    total_items: int
    orders: List[OrderResponse]
    total_orders: int
