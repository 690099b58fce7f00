"""Cart management service."""
import logging
from decimal import Decimal
from typing import Any, Dict, List

from opentelemetry import trace
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exceptions import AccountNotFoundError, ItemNotFoundError
from models import CartItem, Item, UserAccount
from monitoring import cart_additions_counter, cart_removals_counter

logger = logging.getLogger(__name__)


class CartService:
    """Service for managing shopping carts."""

    def __init__(self):
        self.tracer = trace.get_tracer(__name__)

    def get_user(self, db: Session, user_id: int, lock: bool = False) -> UserAccount:
        """
        Load a user account.

        Args:
            db: Database session
            user_id: User identifier
            lock: Take a row lock (SELECT ... FOR UPDATE) where the backend supports it

        Raises:
            AccountNotFoundError: If the user does not exist
        """
        with self.tracer.start_as_current_span("db.query.get_user") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "users")
            db_span.set_attribute("user.id", user_id)

            query = db.query(UserAccount).filter(UserAccount.id == user_id)
            if lock:
                query = query.with_for_update()
            user = query.first()

            if user is None:
                db_span.set_attribute("db.rows_returned", 0)
                raise AccountNotFoundError(user_id)
            db_span.set_attribute("db.rows_returned", 1)
            return user

    def add_item(self, db: Session, user_id: int, item_id: int) -> None:
        """
        Add item to user's cart. Adding an item already in the cart is a no-op.

        Args:
            db: Database session
            user_id: User identifier
            item_id: Catalog item identifier

        Raises:
            AccountNotFoundError: If the user does not exist
            ItemNotFoundError: If the item is not in the catalog
        """
        span = trace.get_current_span()
        span.set_attribute("user.id", user_id)
        span.set_attribute("item.id", item_id)

        self.get_user(db, user_id)
        self._ensure_item_exists(db, item_id)

        if self._find_cart_row(db, user_id, item_id) is not None:
            logger.debug("Item already in cart", extra={
                "user_id": user_id,
                "item_id": item_id
            })
            return

        with self.tracer.start_as_current_span("db.query.insert_cart_item") as db_span:
            db_span.set_attribute("db.operation", "INSERT")
            db_span.set_attribute("db.table", "cart_items")
            db_span.set_attribute("user.id", user_id)
            db_span.set_attribute("item.id", item_id)

            db.add(CartItem(user_id=user_id, item_id=item_id))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                # Lost a race: either the same add landed first, or the item was deleted
                if db.get(Item, item_id) is None:
                    raise ItemNotFoundError(item_id)
                return

        cart_additions_counter.add(1, {"item_id": str(item_id)})

        logger.info("Added item to cart", extra={
            "user_id": user_id,
            "item_id": item_id
        })

    def remove_item(self, db: Session, user_id: int, item_id: int) -> None:
        """
        Remove item from user's cart.

        Raises:
            AccountNotFoundError: If the user does not exist
            ItemNotFoundError: If the item is not in the catalog or not in the cart
        """
        self.get_user(db, user_id)
        self._ensure_item_exists(db, item_id)

        with self.tracer.start_as_current_span("db.query.delete_cart_item") as db_span:
            db_span.set_attribute("db.operation", "DELETE")
            db_span.set_attribute("db.table", "cart_items")
            db_span.set_attribute("user.id", user_id)
            db_span.set_attribute("item.id", item_id)

            deleted = db.query(CartItem).filter(
                CartItem.user_id == user_id,
                CartItem.item_id == item_id
            ).delete(synchronize_session=False)
            db.commit()

            db_span.set_attribute("db.rows_affected", deleted)

        if deleted == 0:
            raise ItemNotFoundError(item_id)

        cart_removals_counter.add(1, {"item_id": str(item_id)})

        logger.info("Removed item from cart", extra={
            "user_id": user_id,
            "item_id": item_id
        })

    def get_cart(self, db: Session, user_id: int) -> Dict[str, Any]:
        """
        Get user's cart contents.

        Args:
            db: Database session
            user_id: User identifier

        Returns:
            Cart items resolved to catalog records, in insertion order, and their total
        """
        self.get_user(db, user_id)
        cart_items = self.get_cart_items(db, user_id)
        items = self.resolve_items(db, [cart_item.item_id for cart_item in cart_items])

        return {
            "items": items,
            "total": sum((item.price for item in items), Decimal("0"))
        }

    def get_cart_items(self, db: Session, user_id: int) -> List[CartItem]:
        """
        Get cart rows for user, oldest first.

        Args:
            db: Database session
            user_id: User identifier

        Returns:
            List of cart items
        """
        with self.tracer.start_as_current_span("db.query.get_cart_items") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "cart_items")
            db_span.set_attribute("user.id", user_id)

            cart_items = db.query(CartItem).filter(
                CartItem.user_id == user_id
            ).order_by(CartItem.id).all()

            db_span.set_attribute("db.rows_returned", len(cart_items))

            return cart_items

    def resolve_items(self, db: Session, item_ids: List[int]) -> List[Item]:
        """Load catalog items for the given ids, preserving their order."""
        if not item_ids:
            return []

        with self.tracer.start_as_current_span("db.query.get_items") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "items")

            found = {item.id: item for item in db.query(Item).filter(Item.id.in_(item_ids)).all()}

            db_span.set_attribute("db.rows_returned", len(found))

        return [found[item_id] for item_id in item_ids if item_id in found]

    def clear_cart_items(self, db: Session, cart_items: List[CartItem]) -> int:
        """
        Delete exactly the given cart rows. Does not commit.

        Returns:
            Number of rows actually deleted
        """
        if not cart_items:
            return 0

        with self.tracer.start_as_current_span("db.query.delete_cart_items") as db_span:
            db_span.set_attribute("db.operation", "DELETE")
            db_span.set_attribute("db.table", "cart_items")

            deleted = db.query(CartItem).filter(
                CartItem.id.in_([cart_item.id for cart_item in cart_items])
            ).delete(synchronize_session=False)

            db_span.set_attribute("db.rows_affected", deleted)
            return deleted

    def _ensure_item_exists(self, db: Session, item_id: int) -> None:
        with self.tracer.start_as_current_span("db.query.get_item") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "items")
            db_span.set_attribute("item.id", item_id)

            if db.get(Item, item_id) is None:
                db_span.set_attribute("db.rows_returned", 0)
                raise ItemNotFoundError(item_id)
            db_span.set_attribute("db.rows_returned", 1)

    @staticmethod
    def _find_cart_row(db: Session, user_id: int, item_id: int):
        return db.query(CartItem).filter(
            CartItem.user_id == user_id,
            CartItem.item_id == item_id
        ).first()
