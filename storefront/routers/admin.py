from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..auth import require_admin
from ..dependencies import get_order_service
from ..orders import OrderService
from ..schemas import OrderListResponse
from ..status import OrderStatus

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/orders", response_model=OrderListResponse)
def list_all_orders(
    user_id: Optional[int] = Query(None, alias="userId"),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    service: OrderService = Depends(get_order_service),
):
    """All customers' orders, filterable by user, status and creation date."""
    result = service.list_all_orders(
        user_id=user_id, status=order_status, start_date=start_date, end_date=end_date,
        page=page, limit=limit,
    )
    return OrderListResponse(
        results=len(result.items),
        total=result.total,
        page=result.page,
        total_pages=result.total_pages,
        data=service.present(result.items),
    )
