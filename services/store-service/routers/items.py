"""Public catalog API router."""
from typing import List

from fastapi import APIRouter, Depends
from opentelemetry import trace
from sqlalchemy.orm import Session

from database import get_db
from dependencies import RecordIdPath, get_catalog_service
from schemas import ItemResponse
from services.catalog_service import CatalogService

router = APIRouter(prefix="/items", tags=["items"])


@router.get("", response_model=List[ItemResponse])
def get_items(
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """List the catalog. No authentication required."""
    items = catalog_service.list_items(db)

    span = trace.get_current_span()
    span.set_attribute("item.count", len(items))
    span.set_attribute("endpoint.type", "catalog")

    return [ItemResponse.model_validate(item) for item in items]


@router.get("/{item_id}", response_model=ItemResponse)
def get_item(
    item_id: RecordIdPath,
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """Get one catalog item. No authentication required."""
    item = catalog_service.get_item(db, item_id)

    span = trace.get_current_span()
    span.set_attribute("item.id", item_id)

    return ItemResponse.model_validate(item)
