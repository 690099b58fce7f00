"""Catalog item service."""
import logging
from decimal import Decimal
from typing import List, Optional

from opentelemetry import trace
from sqlalchemy.orm import Session

from exceptions import ItemNotFoundError, ValidationError
from models import CartItem, Item
from monitoring import items_deleted_counter

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for catalog items."""

    def __init__(self):
        self.tracer = trace.get_tracer(__name__)

    def list_items(self, db: Session) -> List[Item]:
        with self.tracer.start_as_current_span("db.query.get_items") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "items")

            items = db.query(Item).order_by(Item.id).all()

            db_span.set_attribute("db.rows_returned", len(items))
            return items

    def get_item(self, db: Session, item_id: int) -> Item:
        with self.tracer.start_as_current_span("db.query.get_item") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", "items")
            db_span.set_attribute("item.id", item_id)

            item = db.get(Item, item_id)

            if item is None:
                db_span.set_attribute("db.rows_returned", 0)
                raise ItemNotFoundError(item_id)
            db_span.set_attribute("db.rows_returned", 1)
            return item

    def create_item(
        self,
        db: Session,
        name: str,
        description: str,
        price: Decimal
    ) -> Item:
        self._validate(name, price)

        item = Item(name=name, description=description or "", price=price)
        db.add(item)
        db.commit()

        logger.info("Item created", extra={
            "item_id": item.id,
            "item_name": name,
            "price": str(price)
        })
        return item

    def update_item(
        self,
        db: Session,
        item_id: int,
        name: str,
        description: Optional[str],
        price: Decimal
    ) -> Item:
        """
        Overwrite an item's fields.

        Existing orders keep the total fixed at their checkout; only carts
        and future checkouts see the new price.
        """
        self._validate(name, price)
        item = self.get_item(db, item_id)

        item.name = name
        item.description = description or ""
        item.price = price
        db.commit()

        logger.info("Item updated", extra={
            "item_id": item_id,
            "item_name": name,
            "price": str(price)
        })
        return item

    def delete_item(self, db: Session, item_id: int) -> None:
        """
        Delete an item and purge it from every cart.

        Both happen in one transaction so no cart is left holding the id.

        Raises:
            ItemNotFoundError: If the item does not exist
        """
        item = self.get_item(db, item_id)

        with self.tracer.start_as_current_span("db.transaction.delete_item") as db_span:
            db_span.set_attribute("db.operation", "DELETE")
            db_span.set_attribute("db.table", "items")
            db_span.set_attribute("item.id", item_id)

            try:
                purged = db.query(CartItem).filter(CartItem.item_id == item_id).delete(
                    synchronize_session=False
                )
                db.delete(item)
                db.commit()
            except Exception as e:
                db.rollback()
                logger.error("Failed to delete item", extra={
                    "item_id": item_id,
                    "error": str(e)
                })
                raise

            db_span.set_attribute("cart_items.purged", purged)

        items_deleted_counter.add(1)

        logger.info("Item deleted", extra={
            "item_id": item_id,
            "carts_purged": purged
        })

    @staticmethod
    def _validate(name: str, price: Decimal) -> None:
        if not name or not name.strip():
            raise ValidationError("Item name must not be empty")
        if price is None or price < 0:
            raise ValidationError("Item price must be non-negative")
