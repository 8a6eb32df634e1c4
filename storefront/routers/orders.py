from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth import get_current_user
from ..dependencies import get_order_service
from ..models import User
from ..orders import OrderService
from ..schemas import OrderListResponse, OrderResponse, PlaceOrderRequest, StatusUpdateRequest
from ..status import OrderStatus

ORDER_PLACED = "Order placed successfully"
ORDER_UPDATED = "Order updated successfully"

router = APIRouter(prefix="/api/orders", tags=["orders"])


# Validates the cart against live stock, snapshots prices and reserves stock.
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def place_order(
    req: PlaceOrderRequest,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = service.place_order(user, req)
    return OrderResponse(message=ORDER_PLACED, data=service.present([order])[0])


# Lists the caller's own orders, newest first.
@router.get("", response_model=OrderListResponse)
def list_orders(
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    result = service.list_orders(
        user, status=order_status, start_date=start_date, end_date=end_date, page=page, limit=limit,
    )
    return OrderListResponse(
        results=len(result.items),
        total=result.total,
        page=result.page,
        total_pages=result.total_pages,
        data=service.present(result.items),
    )


# Retrieves a single order with its lines resolved against the catalog.
@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = service.get_order(order_id, user)
    return OrderResponse(data=service.present([order])[0])


# Moves an order along the status table.
@router.patch("/{order_id}", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    req: StatusUpdateRequest,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = service.transition_status(order_id, req.status, user)
    return OrderResponse(message=ORDER_UPDATED, data=service.present([order])[0])
