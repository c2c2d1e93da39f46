"""
SQLAlchemy ORM Models Package.

- base: Base class, TimestampMixin
- catalog: Category, DietType, Recipe, Product
- customer: Customer
- cart: CartItem
- order: Order, OrderItem
"""

from .base import Base, TimestampMixin

from .catalog import Category, DietType, Recipe, Product

from .customer import Customer

from .cart import CartItem

from .order import Order, OrderItem

__all__ = [
    "Base",
    "TimestampMixin",
    "Category",
    "DietType",
    "Recipe",
    "Product",
    "Customer",
    "CartItem",
    "Order",
    "OrderItem",
]
