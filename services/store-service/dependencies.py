"""Dependency injection for services."""
from typing import Annotated

from fastapi import Path, Request

from config import Settings
from schemas import MAX_ID
from services.account_service import AccountService
from services.cart_service import CartService
from services.catalog_service import CatalogService
from services.order_service import OrderService

RecordIdPath = Annotated[int, Path(ge=1, le=MAX_ID)]


def get_app_settings(request: Request) -> Settings:
    """Get settings from app state."""
    return request.app.state.settings


def get_account_service() -> AccountService:
    """Get account service instance."""
    return AccountService()


def get_catalog_service() -> CatalogService:
    """Get catalog service instance."""
    return CatalogService()


def get_cart_service() -> CartService:
    """Get cart service instance."""
    return CartService()


def get_order_service() -> OrderService:
    """Get order service instance."""
    return OrderService(get_cart_service())
