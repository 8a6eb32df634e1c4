from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status

from ..auth import require_admin
from ..dependencies import get_inventory
from ..inventory import Inventory
from ..schemas import (
    MAX_ID,
    ProductCreateRequest,
    ProductListResponse,
    ProductOut,
    ProductResponse,
    ProductUpdateRequest,
)

PRODUCT_ADDED = "Product added successfully"
PRODUCT_UPDATED = "Product updated successfully"

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=ProductListResponse)
def list_products(
    request: Request,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    inventory: Inventory = Depends(get_inventory),
):
    settings = request.app.state.settings
    limit = min(limit or settings.default_page_limit, settings.max_page_limit)
    products, total, total_pages = inventory.list_products(category=category, page=page, limit=limit)
    return ProductListResponse(
        results=len(products),
        total=total,
        page=page,
        total_pages=total_pages,
        data=[ProductOut.model_validate(p) for p in products],
    )


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int = Path(..., ge=1, le=MAX_ID), inventory: Inventory = Depends(get_inventory)):
    product = inventory.require_product(product_id)
    return ProductResponse(data=ProductOut.model_validate(product))


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(req: ProductCreateRequest, inventory: Inventory = Depends(get_inventory)):
    product = inventory.create_product(req.model_dump())
    return ProductResponse(message=PRODUCT_ADDED, data=ProductOut.model_validate(product))


@router.patch("/{product_id}", response_model=ProductResponse, dependencies=[Depends(require_admin)])
def update_product(
    req: ProductUpdateRequest,
    product_id: int = Path(..., ge=1, le=MAX_ID),
    inventory: Inventory = Depends(get_inventory),
):
    """Partial update; only fields present in the body change."""
    product = inventory.update_product(product_id, req.model_dump(exclude_unset=True, exclude_none=True))
    return ProductResponse(message=PRODUCT_UPDATED, data=ProductOut.model_validate(product))
