from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .database import get_db
from .inventory import Inventory
from .orders import OrderService


def get_order_service(request: Request, db: Session = Depends(get_db)) -> OrderService:
    """Build the order service for one request from what create_app stored."""
    return OrderService(db, publisher=request.app.state.publisher, settings=request.app.state.settings)


def get_inventory(db: Session = Depends(get_db)) -> Inventory:
    return Inventory(db)
