"""API routes for catalog items.

Partners manage their own items; admins may manage any partner's items.
All endpoints use the /api/v1/catalog prefix.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from mealpath.api.middleware.auth import get_current_actor
from mealpath.api.schemas import (
    CatalogItemCreate,
    CatalogItemListResponse,
    CatalogItemResponse,
    CatalogItemUpdate,
)
from mealpath.db.connection import get_db
from mealpath.services.actors import Actor
from mealpath.services.catalog_service import CatalogService

router = APIRouter(prefix="/catalog", tags=["catalog"])


def _get_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injector for CatalogService."""
    return CatalogService(db)


@router.post("/items", response_model=CatalogItemResponse, status_code=201)
def create_item(
    data: CatalogItemCreate,
    actor: Actor = Depends(get_current_actor),
    service: CatalogService = Depends(_get_service),
) -> CatalogItemResponse:
    """Create a catalog item."""
    item = service.create_item(actor, **data.model_dump())
    return CatalogItemResponse.model_validate(item)


@router.get("/items", response_model=CatalogItemListResponse)
def list_items(
    partner_account_id: str | None = None,
    service: CatalogService = Depends(_get_service),
) -> CatalogItemListResponse:
    """List catalog items, optionally for one partner."""
    items = service.list_items(partner_account_id)
    return CatalogItemListResponse(
        items=[CatalogItemResponse.model_validate(i) for i in items],
        total=len(items),
    )


@router.get("/items/{item_id}", response_model=CatalogItemResponse)
def get_item(
    item_id: str,
    service: CatalogService = Depends(_get_service),
) -> CatalogItemResponse:
    """Get one catalog item with its current price and stock."""
    return CatalogItemResponse.model_validate(service.get_item(item_id))


@router.patch("/items/{item_id}", response_model=CatalogItemResponse)
def update_item(
    item_id: str,
    data: CatalogItemUpdate,
    actor: Actor = Depends(get_current_actor),
    service: CatalogService = Depends(_get_service),
) -> CatalogItemResponse:
    """Update an item. Send ``"stock": null`` to make stock unlimited."""
    item = service.update_item(actor, item_id, **data.model_dump(exclude_unset=True))
    return CatalogItemResponse.model_validate(item)


@router.delete("/items/{item_id}", status_code=204)
def delete_item(
    item_id: str,
    actor: Actor = Depends(get_current_actor),
    service: CatalogService = Depends(_get_service),
) -> Response:
    """Delete an item (owning partner or admin). Existing orders are unaffected."""
    service.delete_item(actor, item_id)
    return Response(status_code=204)
