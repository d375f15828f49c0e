"""
Init file for the SQLAlchemy models.
"""

from .categories import Category
from .order_items import OrderItem
from .orders import Order, OrderStatus
from .products import Product
from .users import User

__all__ = [
    "Category",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "User",
]
