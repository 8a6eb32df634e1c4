"""Catalog store: product lookups and stock movements.

Stock is only ever changed with single conditional UPDATE statements so two
concurrent orders for the same product cannot both read the same stock
level and overwrite each other.
"""

import logging
import math
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import ProductNotFoundError, ValidationError
from .models import Product

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("name", "description", "price", "category", "images", "stock")


class Inventory:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def require_product(self, product_id: int) -> Product:
        product = self.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_products(self, product_ids: Iterable[int]) -> dict[int, Product]:
        """Bulk lookup keyed by id. Missing ids are simply absent."""
        ids = set(product_ids)
        if not ids:
            return {}
        products = self.db.query(Product).filter(Product.id.in_(ids)).all()
        return {p.id: p for p in products}

    def current_stock(self, product_id: int) -> int:
        stock = self.db.query(Product.stock).filter(Product.id == product_id).scalar()
        return stock or 0

    def decrement_if_at_least(self, product_id: int, quantity: int) -> bool:
        """Take ``quantity`` units off the shelf if at least that many are there.

        Returns False, leaving stock untouched, when the product is missing
        or holds fewer units. Does not commit.
        """
        updated = (
            self.db.query(Product)
            .filter(Product.id == product_id, Product.stock >= quantity)
            .update({Product.stock: Product.stock - quantity}, synchronize_session=False)
        )
        return updated == 1

    def restock(self, product_id: int, quantity: int) -> bool:
        """Put ``quantity`` units back. Does not commit."""
        updated = (
            self.db.query(Product)
            .filter(Product.id == product_id)
            .update({Product.stock: Product.stock + quantity}, synchronize_session=False)
        )
        if updated != 1:
            logger.warning("Restock skipped: product %s no longer exists", product_id)
        return updated == 1

    # --- Catalog maintenance ---

    def list_products(self, category: Optional[str] = None, page: int = 1, limit: int = 10):
        query = self.db.query(Product)
        if category:
            query = query.filter(Product.category == category)
        total = query.count()
        products = (
            query.order_by(Product.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return products, total, math.ceil(total / limit)

    def create_product(self, data: dict) -> Product:
        self._check_values(data)
        product = Product(**data)
        self.db.add(product)
        self._commit_unique_name(data.get("name"))
        self.db.refresh(product)
        logger.info("Product %s created (%s)", product.id, product.name)
        return product

    def update_product(self, product_id: int, changes: dict) -> Product:
        product = self.require_product(product_id)
        self._check_values(changes)
        for key, value in changes.items():
            if key in _UPDATABLE_FIELDS:
                setattr(product, key, value)
        self._commit_unique_name(changes.get("name"))
        self.db.refresh(product)
        logger.info("Product %s updated: %s", product.id, sorted(changes))
        return product

    def _commit_unique_name(self, name: Optional[str]) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError(
                f"Duplicate field value: {name}. Please use another value!", field="name"
            )

    @staticmethod
    def _check_values(data: dict) -> None:
        if data.get("price") is not None and data["price"] < 0:
            raise ValidationError("Price must not be negative", field="price")
        if data.get("stock") is not None and data["stock"] < 0:
            raise ValidationError("Stock must not be negative", field="stock")
