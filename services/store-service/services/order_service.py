"""Order management service."""
import logging
from decimal import Decimal
from typing import List

from opentelemetry import trace
from sqlalchemy.orm import Session

from exceptions import (
    CheckoutConflictError,
    EmptyCartError,
    ItemNotFoundError,
    OrderNotFoundError,
    ValidationError,
)
from models import Order
from monitoring import (
    checkout_amount_histogram,
    checkout_counter,
    order_status_updates_counter,
)
from services.cart_service import CartService

logger = logging.getLogger(__name__)

PENDING = "pending"

# Status values reported as metric attributes; anything else is counted as "other"
REPORTED_STATUSES = frozenset({"pending", "paid", "shipped", "delivered", "cancelled"})


class OrderService:
    """Service for managing orders."""

    def __init__(self, cart_service: CartService):
        """
        Initialize order service.

        Args:
            cart_service: Cart service instance
        """
        self.cart_service = cart_service
        self.tracer = trace.get_tracer(__name__)

    def checkout(self, db: Session, user_id: int) -> Order:
        """
        Turn the user's cart into a pending order.

        Reading the cart, creating the order (which puts it in the user's
        history) and clearing the captured cart rows commit together or not
        at all. Items added to the cart after the snapshot was read are left
        in place.

        Args:
            db: Database session
            user_id: User identifier

        Returns:
            The created order

        Raises:
            AccountNotFoundError: If the user does not exist
            ItemNotFoundError: If a cart item vanished from the catalog mid-checkout
            EmptyCartError: If there is nothing to check out
            CheckoutConflictError: If a concurrent checkout already consumed the cart
        """
        span = trace.get_current_span()
        span.set_attribute("user.id", user_id)

        try:
            with self.tracer.start_as_current_span("db.transaction.checkout") as db_span:
                db_span.set_attribute("user.id", user_id)

                snapshot_ids = {c.id for c in self.cart_service.get_cart_items(db, user_id)}

                # Per-user serialization point on backends with row locks
                self.cart_service.get_user(db, user_id, lock=True)

                cart_items = self.cart_service.get_cart_items(db, user_id)
                if not snapshot_ids <= {c.id for c in cart_items}:
                    # Rows seen before the lock were consumed while waiting on it
                    raise CheckoutConflictError(user_id)
                if not cart_items:
                    raise EmptyCartError(user_id)

                item_ids = [cart_item.item_id for cart_item in cart_items]
                items = self.cart_service.resolve_items(db, item_ids)
                if len(items) != len(item_ids):
                    missing = set(item_ids) - {item.id for item in items}
                    raise ItemNotFoundError(min(missing))

                total = sum((item.price for item in items), Decimal("0"))
                order = self._add_order(db, user_id, item_ids, total)

                cleared = self.cart_service.clear_cart_items(db, cart_items)
                if cleared != len(cart_items):
                    raise CheckoutConflictError(user_id)

                db.commit()

                db_span.set_attribute("order.id", order.id)
                db_span.set_attribute("order.total", float(total))
        except Exception as e:
            db.rollback()
            checkout_counter.add(1, {"status": "failed"})
            logger.error("Checkout failed", extra={
                "user_id": user_id,
                "error": str(e)
            })
            raise

        checkout_counter.add(1, {"status": "pending"})
        checkout_amount_histogram.record(float(total))

        logger.info("Checkout completed", extra={
            "user_id": user_id,
            "order_id": order.id,
            "amount": str(total),
            "item_count": len(item_ids)
        })
        return order

    def create_order(
        self,
        db: Session,
        user_id: int,
        item_ids: List[int],
        total: Decimal
    ) -> Order:
        """
        Create a pending order directly, without going through a cart.

        Raises:
            AccountNotFoundError: If the user does not exist
            ValidationError: If the total is negative
        """
        if total < 0:
            raise ValidationError("Order total must be non-negative")

        self.cart_service.get_user(db, user_id)
        order = self._add_order(db, user_id, list(item_ids), total)
        db.commit()

        logger.info("Order created", extra={
            "user_id": user_id,
            "order_id": order.id,
            "amount": str(total)
        })
        return order

    def get_order(self, db: Session, order_id: int) -> Order:
        with self.tracer.start_as_current_span("db.query.get_order") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "orders")
            db_span.set_attribute("order.id", order_id)

            order = db.get(Order, order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            return order

    def list_orders(self, db: Session) -> List[Order]:
        return db.query(Order).order_by(Order.id).all()

    def get_user_orders(self, db: Session, user_id: int) -> List[Order]:
        """
        Get all orders for a user.

        Args:
            db: Database session
            user_id: User identifier

        Returns:
            List of orders, oldest first
        """
        self.cart_service.get_user(db, user_id)

        with self.tracer.start_as_current_span("db.query.get_user_orders") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "orders")
            db_span.set_attribute("user.id", user_id)

            orders = db.query(Order).filter(Order.user_id == user_id).order_by(Order.id).all()

            db_span.set_attribute("db.rows_returned", len(orders))

            return orders

    def update_status(self, db: Session, order_id: int, status: str) -> Order:
        """Set an order's status. Any non-empty status is accepted."""
        status = (status or "").strip()
        if not status:
            raise ValidationError("Order status must not be empty")

        order = self.get_order(db, order_id)
        previous = order.status
        order.status = status
        db.commit()

        order_status_updates_counter.add(1, {
            "to": status if status in REPORTED_STATUSES else "other"
        })

        logger.info("Order status updated", extra={
            "order_id": order_id,
            "previous_status": previous,
            "status": status
        })
        return order

    def delete_order(self, db: Session, order_id: int) -> None:
        order = self.get_order(db, order_id)
        db.delete(order)
        db.commit()

        logger.info("Order deleted", extra={"order_id": order_id})

    def _add_order(self, db: Session, user_id: int, item_ids: List[int], total: Decimal) -> Order:
        with self.tracer.start_as_current_span("db.query.insert_order") as db_span:
            db_span.set_attribute("db.operation", "INSERT")
            db_span.set_attribute("db.table", "orders")
            db_span.set_attribute("user.id", user_id)

            order = Order(user_id=user_id, items=item_ids, total=total, status=PENDING)
            db.add(order)
            db.flush()

            db_span.set_attribute("order.id", order.id)
            return order
