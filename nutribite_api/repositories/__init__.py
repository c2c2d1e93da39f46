"""
Data access for the ordering core.

Usage:
    from nutribite_api.repositories import ProductRepository, ProductFilters

    repo = ProductRepository(db)
    products = repo.find_all(ProductFilters(category_id=5))
    product = repo.lock_for_update(123)
"""

from .base import BaseRepository, RepositoryFilters
from .product import ProductRepository, ProductFilters
from .cart import CartRepository
from .customer import CustomerRepository
from .order import OrderRepository, OrderFilters

__all__ = [
    "BaseRepository",
    "RepositoryFilters",
    "ProductRepository",
    "ProductFilters",
    "CartRepository",
    "CustomerRepository",
    "OrderRepository",
    "OrderFilters",
]
