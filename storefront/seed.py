"""Seed the catalog and the two demo accounts.

Usage::

    DATABASE_URL=sqlite:///./storefront.db storefront-seed
"""

import logging
import os
import secrets

from .config import Settings
from .database import create_db_engine, create_session_factory, init_db
from .models import Product, User

logger = logging.getLogger(__name__)

PRODUCTS = [
    {
        "name": "Smart LED TV 55-inch",
        "description": "4K Ultra HD Smart LED TV with HDR and built-in streaming apps",
        "price": 699.99,
        "category": "Electronics",
        "images": ["https://via.placeholder.com/500x500?text=Smart+TV"],
        "stock": 15,
    },
    {
        "name": "Wireless Noise-Cancelling Headphones",
        "description": "Premium wireless headphones with active noise cancellation",
        "price": 249.99,
        "category": "Electronics",
        "images": ["https://via.placeholder.com/500x500?text=Headphones"],
        "stock": 25,
    },
    {
        "name": "Gaming Laptop",
        "description": "15.6-inch gaming laptop with RTX 3060, 16GB RAM, 512GB SSD",
        "price": 1299.99,
        "category": "Electronics",
        "images": ["https://via.placeholder.com/500x500?text=Gaming+Laptop"],
        "stock": 10,
    },
    {
        "name": "Cotton Crew T-Shirt",
        "description": "Soft everyday t-shirt in organic cotton",
        "price": 19.99,
        "category": "Clothing",
        "images": ["https://via.placeholder.com/500x500?text=T-Shirt"],
        "stock": 100,
    },
    {
        "name": "Stainless Steel Water Bottle",
        "description": "Insulated 750ml bottle, keeps drinks cold for 24 hours",
        "price": 24.5,
        "category": "Home",
        "images": ["https://via.placeholder.com/500x500?text=Bottle"],
        "stock": 60,
    },
]


def seed(session_factory, admin_token: str, customer_token: str) -> dict:
    """Insert missing products and users. Existing rows are left alone."""
    db = session_factory()
    try:
        added = 0
        for data in PRODUCTS:
            if db.query(Product).filter(Product.name == data["name"]).first() is None:
                db.add(Product(**data))
                added += 1

        accounts = [
            ("Store Admin", "admin@example.com", "admin", admin_token),
            ("Demo Customer", "customer@example.com", "customer", customer_token),
        ]
        tokens = {}
        for name, email, role, token in accounts:
            user = db.query(User).filter(User.email == email).first()
            if user is None:
                user = User(name=name, email=email, role=role, api_token=token)
                db.add(user)
            tokens[role] = user.api_token

        db.commit()
        logger.info("Seeded %d product(s)", added)
        return tokens
    finally:
        db.close()


def main():
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(message)s")

    engine = create_db_engine(settings.database_url)
    init_db(engine)

    tokens = seed(
        create_session_factory(engine),
        admin_token=os.getenv("SEED_ADMIN_TOKEN") or secrets.token_hex(24),
        customer_token=os.getenv("SEED_CUSTOMER_TOKEN") or secrets.token_hex(24),
    )
    print(f"Admin token:    {tokens['admin']}")
    print(f"Customer token: {tokens['customer']}")


if __name__ == "__main__":
    main()
