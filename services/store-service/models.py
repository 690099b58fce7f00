"""Database models for the store service."""
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class AccountKind(str, Enum):
    ADMIN = "admin"
    USER = "user"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdminAccount(Base):
    """Admin account model."""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    auth_token = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class UserAccount(Base):
    """User account model. Owns a cart and an order history."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    auth_token = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    cart_items = relationship(
        "CartItem",
        order_by="CartItem.id",
        cascade="all, delete-orphan",
    )
    orders = relationship(
        "Order",
        primaryjoin="UserAccount.id == foreign(Order.user_id)",
        order_by="Order.id",
        viewonly=True,
    )

    @property
    def items(self):
        """Cart item ids in insertion order."""
        return [cart_item.item_id for cart_item in self.cart_items]

    @property
    def order_ids(self):
        return [order.id for order in self.orders]


class Item(Base):
    """Catalog item model."""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, default="")
    price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class CartItem(Base):
    """Cart entry: one row per (user, item)."""
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_cart_items_user_item"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Order(Base):
    """Order model. Items and total are a snapshot taken at creation."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True, nullable=False)
    items = Column(JSON, nullable=False, default=list)
    total = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), default=utcnow)


ACCOUNT_MODELS = {
    AccountKind.ADMIN: AdminAccount,
    AccountKind.USER: UserAccount,
}
