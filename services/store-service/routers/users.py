"""User account, cart and checkout API router."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import require_user
from config import Settings
from database import get_db
from dependencies import (
    get_account_service,
    get_app_settings,
    get_cart_service,
    get_order_service,
)
from models import AccountKind, UserAccount
from schemas import (
    CartItemRequest,
    CartResponse,
    CheckoutResponse,
    CredentialsRequest,
    ItemResponse,
    LoginResponse,
    OrderResponse,
    UpdateAccountRequest,
    UserAccountResponse,
)
from services.account_service import AccountService
from services.cart_service import CartService
from services.order_service import OrderService

router = APIRouter(prefix="/user", tags=["users"])


@router.post("/signup", response_model=UserAccountResponse)
def signup(
    request: CredentialsRequest,
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service)
):
    """Create a user account."""
    account = account_service.signup(db, request.user, request.password)
    return UserAccountResponse.model_validate(account)


@router.post("/login", response_model=LoginResponse)
def login(
    request: CredentialsRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    account_service: AccountService = Depends(get_account_service)
):
    """Authenticate a user and return a bearer token."""
    token = account_service.login(
        db,
        AccountKind.USER,
        request.user,
        request.password,
        settings.jwt_secret,
        ttl=settings.token_ttl
    )
    return LoginResponse(auth_token=token)


@router.get("/{account_id}", response_model=UserAccountResponse)
def get_account(account_id: int, account: UserAccount = Depends(require_user)):
    """Get the authenticated user's profile."""
    return UserAccountResponse.model_validate(account)


@router.put("/{account_id}")
def update_account(
    account_id: int,
    request: UpdateAccountRequest,
    account: UserAccount = Depends(require_user),
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service)
):
    """Change the user's username. Existing tokens stop working."""
    account_service.update_username(db, AccountKind.USER, account.id, request.user)
    return {"updated_account": account.id}


@router.get("/{account_id}/items", response_model=CartResponse)
def get_cart(
    account_id: int,
    account: UserAccount = Depends(require_user),
    db: Session = Depends(get_db),
    cart_service: CartService = Depends(get_cart_service)
):
    """Get the user's cart."""
    cart = cart_service.get_cart(db, account.id)
    return CartResponse(
        items=[ItemResponse.model_validate(item) for item in cart["items"]],
        total=cart["total"]
    )


@router.post("/{account_id}/items")
def add_to_cart(
    account_id: int,
    request: CartItemRequest,
    account: UserAccount = Depends(require_user),
    db: Session = Depends(get_db),
    cart_service: CartService = Depends(get_cart_service)
):
    """Add an item to the user's cart."""
    cart_service.add_item(db, account.id, request.item_id)
    return {"added_item": request.item_id, "account": account.id}


@router.delete("/{account_id}/items")
def remove_from_cart(
    account_id: int,
    request: CartItemRequest,
    account: UserAccount = Depends(require_user),
    db: Session = Depends(get_db),
    cart_service: CartService = Depends(get_cart_service)
):
    """Remove an item from the user's cart."""
    cart_service.remove_item(db, account.id, request.item_id)
    return {"removed_item": request.item_id, "account": account.id}


@router.post("/{account_id}/checkout", response_model=CheckoutResponse)
def checkout(
    account_id: int,
    account: UserAccount = Depends(require_user),
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """Check out the user's cart into a pending order."""
    order = order_service.checkout(db, account.id)
    return CheckoutResponse(order=OrderResponse.model_validate(order), status=order.status)


@router.get("/{account_id}/orders", response_model=List[OrderResponse])
def get_orders(
    account_id: int,
    account: UserAccount = Depends(require_user),
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """Get the user's order history."""
    return [
        OrderResponse.model_validate(order)
        for order in order_service.get_user_orders(db, account.id)
    ]
