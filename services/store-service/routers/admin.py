"""Admin API router: account, catalog and order management."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import require_admin
from config import Settings
from database import get_db
from dependencies import (
    RecordIdPath,
    get_account_service,
    get_app_settings,
    get_catalog_service,
    get_order_service,
)
from models import AccountKind, AdminAccount
from schemas import (
    AdminAccountResponse,
    CreateItemRequest,
    CreateOrderRequest,
    CredentialsRequest,
    DashboardResponse,
    DeleteRequest,
    ItemResponse,
    LoginResponse,
    OrderResponse,
    UpdateAccountRequest,
    UpdateOrderRequest,
    UserAccountResponse,
)
from services.account_service import AccountService
from services.catalog_service import CatalogService
from services.order_service import OrderService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=LoginResponse)
def login(
    request: CredentialsRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    account_service: AccountService = Depends(get_account_service)
):
    """Authenticate an admin and return a bearer token."""
    token = account_service.login(
        db,
        AccountKind.ADMIN,
        request.user,
        request.password,
        settings.jwt_secret,
        ttl=settings.token_ttl
    )
    return LoginResponse(auth_token=token)


@router.get("/{account_id}", response_model=AdminAccountResponse)
def get_account(account_id: int, admin: AdminAccount = Depends(require_admin)):
    return AdminAccountResponse.model_validate(admin)


@router.put("/{account_id}")
def update_account(
    account_id: int,
    request: UpdateAccountRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service)
):
    account_service.update_username(db, AccountKind.ADMIN, admin.id, request.user)
    return {"updated_account": admin.id}


@router.get("/{account_id}/dash", response_model=DashboardResponse)
def get_dashboard(
    account_id: int,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service),
    catalog_service: CatalogService = Depends(get_catalog_service),
    order_service: OrderService = Depends(get_order_service)
):
    """Everything in the store, with counts."""
    admins = account_service.list_accounts(db, AccountKind.ADMIN)
    users = account_service.list_accounts(db, AccountKind.USER)
    items = catalog_service.list_items(db)
    orders = order_service.list_orders(db)

    return DashboardResponse(
        admins=[AdminAccountResponse.model_validate(a) for a in admins],
        total_admins=len(admins),
        users=[UserAccountResponse.model_validate(u) for u in users],
        total_users=len(users),
        items=[ItemResponse.model_validate(i) for i in items],
        total_items=len(items),
        orders=[OrderResponse.model_validate(o) for o in orders],
        total_orders=len(orders),
    )


# --- Admin accounts ---

@router.get("/{account_id}/admins", response_model=List[AdminAccountResponse])
def list_admins(
    account_id: int,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service)
):
    return [
        AdminAccountResponse.model_validate(a)
        for a in account_service.list_accounts(db, AccountKind.ADMIN)
    ]


@router.post("/{account_id}/admins", response_model=AdminAccountResponse)
def create_admin(
    account_id: int,
    request: CredentialsRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service)
):
    created = account_service.create_account(db, AccountKind.ADMIN, request.user, request.password)
    return AdminAccountResponse.model_validate(created)


@router.delete("/{account_id}/admins")
def delete_admin(
    account_id: int,
    request: DeleteRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service)
):
    account_service.delete_account(db, AccountKind.ADMIN, request.id)
    return {"deleted_account": request.id}


# --- User accounts ---

@router.get("/{account_id}/users", response_model=List[UserAccountResponse])
def list_users(
    account_id: int,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service)
):
    return [
        UserAccountResponse.model_validate(u)
        for u in account_service.list_accounts(db, AccountKind.USER)
    ]


@router.post("/{account_id}/users", response_model=UserAccountResponse)
def create_user(
    account_id: int,
    request: CredentialsRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service)
):
    created = account_service.create_account(db, AccountKind.USER, request.user, request.password)
    return UserAccountResponse.model_validate(created)


@router.delete("/{account_id}/users")
def delete_user(
    account_id: int,
    request: DeleteRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    account_service: AccountService = Depends(get_account_service)
):
    account_service.delete_account(db, AccountKind.USER, request.id)
    return {"deleted_account": request.id}


# --- Catalog ---

@router.get("/{account_id}/items", response_model=List[ItemResponse])
def list_items(
    account_id: int,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    return [ItemResponse.model_validate(i) for i in catalog_service.list_items(db)]


@router.post("/{account_id}/items", response_model=ItemResponse)
def create_item(
    account_id: int,
    request: CreateItemRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    item = catalog_service.create_item(db, request.name, request.desc, request.price)
    return ItemResponse.model_validate(item)


@router.delete("/{account_id}/items")
def delete_item(
    account_id: int,
    request: DeleteRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """Delete an item; it is removed from every cart in the same transaction."""
    catalog_service.delete_item(db, request.id)
    return {"deleted_item": request.id}


@router.get("/{account_id}/items/{item_id}", response_model=ItemResponse)
def get_item(
    account_id: int,
    item_id: RecordIdPath,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    return ItemResponse.model_validate(catalog_service.get_item(db, item_id))


@router.put("/{account_id}/items/{item_id}")
def update_item(
    account_id: int,
    item_id: RecordIdPath,
    request: CreateItemRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    catalog_service.update_item(db, item_id, request.name, request.desc, request.price)
    return {"updated_item": item_id}


# --- Orders ---

@router.get("/{account_id}/orders", response_model=List[OrderResponse])
def list_orders(
    account_id: int,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    return [OrderResponse.model_validate(o) for o in order_service.list_orders(db)]


@router.post("/{account_id}/orders", response_model=OrderResponse)
def create_order(
    account_id: int,
    request: CreateOrderRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    order = order_service.create_order(db, request.account_id, request.items, request.total)
    return OrderResponse.model_validate(order)


@router.delete("/{account_id}/orders")
def delete_order(
    account_id: int,
    request: DeleteRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    order_service.delete_order(db, request.id)
    return {"deleted_order": request.id}


@router.get("/{account_id}/orders/{order_id}", response_model=OrderResponse)
def get_order(
    account_id: int,
    order_id: RecordIdPath,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    return OrderResponse.model_validate(order_service.get_order(db, order_id))


@router.put("/{account_id}/orders/{order_id}")
def update_order(
    account_id: int,
    order_id: RecordIdPath,
    request: UpdateOrderRequest,
    admin: AdminAccount = Depends(require_admin),
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """Set an order's status."""
    order_service.update_status(db, order_id, request.status)
    return {"updated_order": order_id}
