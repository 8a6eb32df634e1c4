"""Order placement and lifecycle.

Placement runs as one database transaction: every requested line is
validated against the live catalog first, then the order row is written
and each product's stock is taken with a conditional decrement. If any
decrement finds the stock gone (another order got there first) the whole
transaction is rolled back, which also undoes the decrements already made
for this order.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import Settings
from .errors import (
    InsufficientStockError,
    OrderNotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ProductNotFoundError,
    StorefrontError,
    ValidationError,
)
from .inventory import Inventory
from .models import Order, OrderItem, User, utcnow
from .schemas import OrderOut, PaymentMethod, PlaceOrderRequest, ProductSummary
from .status import OrderStatus, ensure_transition

logger = logging.getLogger(__name__)


@dataclass
class PricedLine:
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    subtotal: float


@dataclass
class Page:
    items: List[Order]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


def parse_date_bound(value: Optional[str], field: str) -> Optional[datetime]:
    """Parse an ISO-8601 query value. Naive values are taken as UTC."""
    if value is None or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}", field=field)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def mask_card_number(card_number: Optional[str]) -> Optional[str]:
    if not card_number:
        return card_number
    digits = card_number.replace(" ", "").replace("-", "")
    return "*" * max(len(digits) - 4, 0) + digits[-4:]


class OrderService:
    def __init__(self, db: Session, publisher, settings: Settings):
        self.db = db
        self.inventory = Inventory(db)
        self.publisher = publisher
        self.settings = settings

    # --- Placement ---

    def place_order(self, user: User, request: PlaceOrderRequest) -> Order:
        lines, requested = self._price_lines(request)
        total_price = round(sum(line.subtotal for line in lines), 2)

        details = request.payment_details
        is_card = request.payment_method == PaymentMethod.CREDIT_CARD
        address = request.shipping_address

        order = Order(
            order_id=str(uuid.uuid4()),
            user_id=user.id,
            user_name=user.name,
            user_email=user.email,
            ship_name=address.name,
            ship_email=address.email,
            ship_phone=address.phone,
            ship_address=address.address,
            ship_city=address.city,
            ship_postal_code=address.postal_code,
            ship_country=address.country,
            payment_method=request.payment_method.value,
            card_number=details.card_number if is_card and details else None,
            expiry_date=details.expiry_date if is_card and details else None,
            status=OrderStatus.PENDING.value,
            total_price=total_price,
            items=[
                OrderItem(
                    position=position,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    subtotal=line.subtotal,
                )
                for position, line in enumerate(lines)
            ],
        )

        try:
            self.db.add(order)
            self.db.flush()
            self._reserve_stock(requested, lines)
            self.db.commit()
        except StorefrontError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Order placement failed for user %s", user.id)
            raise PersistenceError("order placement") from e

        self.db.refresh(order)
        logger.info(
            "Order %s placed by user %s: %d line(s), total %.2f",
            order.order_id, user.id, len(lines), total_price,
        )
        self._publish("order.placed", {
            "order_id": order.order_id,
            "user_id": order.user_id,
            "total_price": order.total_price,
            "items": [{"product_id": line.product_id, "quantity": line.quantity} for line in lines],
        })
        return order

    def _price_lines(self, request: PlaceOrderRequest):
        """Check every line against the catalog before anything is written.

        Returns the priced lines and the total quantity asked for per
        product (a product may appear on several lines).
        """
        lines = []
        requested = {}
        for item in request.products:
            product = self.inventory.get_product(item.product_id)
            if product is None:
                raise ProductNotFoundError(item.product_id)

            wanted = requested.get(product.id, 0) + item.quantity
            if wanted > product.stock:
                raise InsufficientStockError(product.name, product.stock)
            requested[product.id] = wanted

            lines.append(PricedLine(
                product_id=product.id,
                product_name=product.name,
                quantity=item.quantity,
                unit_price=product.price,
                subtotal=round(product.price * item.quantity, 2),
            ))
        return lines, requested

    def _reserve_stock(self, requested, lines):
        names = {line.product_id: line.product_name for line in lines}
        for product_id, quantity in requested.items():
            if not self.inventory.decrement_if_at_least(product_id, quantity):
                available = self.inventory.current_stock(product_id)
                logger.warning(
                    "Stock for product %s dropped below %d during placement (now %d); rolling back",
                    product_id, quantity, available,
                )
                raise InsufficientStockError(names[product_id], available)

    # --- Status transitions ---

    def transition_status(self, order_id: str, target: OrderStatus, actor: User) -> Order:
        order = self._load(order_id, actor)
        if not actor.is_admin and target != OrderStatus.CANCELLED:
            raise PermissionDeniedError()

        try:
            while True:
                current = OrderStatus(order.status)
                ensure_transition(current, target)
                if self._claim_status(order, current, target):
                    break
                # Another request moved the order first; judge against where it is now.
                logger.info("Order %s left %s concurrently; re-reading", order_id, current.value)
                self.db.rollback()
                self.db.refresh(order)

            if target == OrderStatus.CANCELLED and self.settings.restock_on_cancel:
                for item in order.items:
                    self.inventory.restock(item.product_id, item.quantity)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Status update failed for order %s", order_id)
            raise PersistenceError("status update") from e

        self.db.refresh(order)
        logger.info("Order %s moved from %s to %s by user %s", order_id, current.value, target.value, actor.id)
        self._publish("order.status_changed", {
            "order_id": order.order_id,
            "from": current.value,
            "to": target.value,
        })
        return order

    def _claim_status(self, order: Order, current: OrderStatus, target: OrderStatus) -> bool:
        """Move the order to ``target`` only if it is still in ``current``."""
        updated = (
            self.db.query(Order)
            .filter(Order.id == order.id, Order.status == current.value)
            .update({Order.status: target.value, Order.updated_at: utcnow()}, synchronize_session=False)
        )
        return updated == 1

    # --- Retrieval ---

    def get_order(self, order_id: str, actor: User) -> Order:
        return self._load(order_id, actor)

    def list_orders(self, actor: User, status: Optional[OrderStatus] = None,
                    start_date: Optional[str] = None, end_date: Optional[str] = None,
                    page: int = 1, limit: Optional[int] = None) -> Page:
        """Orders placed by ``actor``, newest first."""
        return self._list(actor.id, status, start_date, end_date, page, limit)

    def list_all_orders(self, user_id: Optional[int] = None, status: Optional[OrderStatus] = None,
                        start_date: Optional[str] = None, end_date: Optional[str] = None,
                        page: int = 1, limit: Optional[int] = None) -> Page:
        """Administrative listing across all customers."""
        return self._list(user_id, status, start_date, end_date, page, limit)

    def present(self, orders: List[Order]) -> List[OrderOut]:
        """Format orders for display, attaching the live product data.

        Prices and totals always come from the stored snapshot.
        """
        product_ids = {item.product_id for order in orders for item in order.items}
        products = self.inventory.get_products(product_ids)
        return [self._format(order, products) for order in orders]

    def _load(self, order_id: str, actor: User) -> Order:
        order = self.db.query(Order).filter(Order.order_id == order_id).first()
        # Other customers' orders are reported as missing.
        if order is None or (not actor.is_admin and order.user_id != actor.id):
            raise OrderNotFoundError(order_id)
        return order

    def _list(self, user_id, status, start_date, end_date, page, limit) -> Page:
        if page < 1:
            raise ValidationError("page must be at least 1", field="page")
        limit = limit or self.settings.default_page_limit
        if limit < 1:
            raise ValidationError("limit must be at least 1", field="limit")
        limit = min(limit, self.settings.max_page_limit)

        start = parse_date_bound(start_date, "startDate")
        end = parse_date_bound(end_date, "endDate")
        if start and end and start > end:
            raise ValidationError("startDate must not be after endDate", field="startDate")

        query = self.db.query(Order)
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        if status is not None:
            query = query.filter(Order.status == status.value)
        if start is not None:
            query = query.filter(Order.created_at >= start)
        if end is not None:
            query = query.filter(Order.created_at <= end)

        total = query.count()
        orders = (
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return Page(items=orders, total=total, page=page, limit=limit)

    @staticmethod
    def _format(order: Order, products: dict) -> OrderOut:
        items = []
        for item in order.items:
            product = products.get(item.product_id)
            items.append({
                "product_id": item.product_id,
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "subtotal": item.subtotal,
                "product": ProductSummary.model_validate(product) if product else None,
            })

        payment_details = order.payment_details
        if payment_details is not None:
            payment_details["card_number"] = mask_card_number(payment_details["card_number"])

        return OrderOut.model_validate({
            "id": order.order_id,
            "user_id": order.user_id,
            "user_name": order.user_name,
            "user_email": order.user_email,
            "items": items,
            "shipping_address": order.shipping_address,
            "payment_method": order.payment_method,
            "payment_details": payment_details,
            "status": order.status,
            "total_price": order.total_price,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        })

    def _publish(self, routing_key: str, message: dict) -> None:
        # The order is already committed; a broker problem must not undo it.
        try:
            self.publisher.publish(routing_key, message)
        except Exception:
            logger.exception("Failed to publish '%s' for order %s", routing_key, message.get("order_id"))
