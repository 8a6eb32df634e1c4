import pytest

from storefront.errors import ProductNotFoundError, ValidationError
from storefront.inventory import Inventory


@pytest.fixture
def inventory(db):
    return Inventory(db)


class TestConditionalDecrement:
    def test_decrements_when_enough(self, inventory, db, make_product, stock_of):
        product = make_product(stock=5)
        assert inventory.decrement_if_at_least(product.id, 3) is True
        db.commit()
        assert stock_of(product) == 2

    def test_exact_stock_can_be_taken(self, inventory, db, make_product, stock_of):
        product = make_product(stock=4)
        assert inventory.decrement_if_at_least(product.id, 4) is True
        db.commit()
        assert stock_of(product) == 0

    def test_refuses_when_short(self, inventory, db, make_product, stock_of):
        product = make_product(stock=2)
        assert inventory.decrement_if_at_least(product.id, 3) is False
        db.commit()
        assert stock_of(product) == 2

    def test_missing_product(self, inventory):
        assert inventory.decrement_if_at_least(9999, 1) is False

    def test_restock(self, inventory, db, make_product, stock_of):
        product = make_product(stock=1)
        assert inventory.restock(product.id, 4) is True
        db.commit()
        assert stock_of(product) == 5

    def test_restock_missing_product(self, inventory):
        assert inventory.restock(9999, 1) is False


class TestCatalog:
    def test_get_products_skips_missing(self, inventory, make_product):
        a = make_product()
        b = make_product()
        found = inventory.get_products([a.id, b.id, 9999])
        assert set(found) == {a.id, b.id}

    def test_get_products_empty(self, inventory):
        assert inventory.get_products([]) == {}

    def test_require_product_missing(self, inventory):
        with pytest.raises(ProductNotFoundError) as exc_info:
            inventory.require_product(42)
        assert exc_info.value.message == "Product not found: 42"

    def test_create_and_update(self, inventory):
        product = inventory.create_product({
            "name": "Lamp", "description": "Desk lamp", "price": 15.0,
            "category": "Home", "images": [], "stock": 3,
        })
        updated = inventory.update_product(product.id, {"price": 12.5, "stock": 7})
        assert updated.price == 12.5
        assert updated.stock == 7
        assert updated.name == "Lamp"

    def test_duplicate_name_rejected(self, inventory, make_product):
        make_product(name="Lamp")
        with pytest.raises(ValidationError) as exc_info:
            inventory.create_product({
                "name": "Lamp", "description": "", "price": 1.0,
                "category": "Home", "images": [], "stock": 1,
            })
        assert "Duplicate field value" in exc_info.value.message

    def test_negative_values_rejected(self, inventory, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            inventory.update_product(product.id, {"stock": -1})

    def test_list_products_by_category(self, inventory, make_product):
        make_product(category="Home")
        make_product(category="Toys")
        make_product(category="Home")
        products, total, total_pages = inventory.list_products(category="Home", page=1, limit=1)
        assert total == 2
        assert total_pages == 2
        assert len(products) == 1
        assert products[0].category == "Home"
