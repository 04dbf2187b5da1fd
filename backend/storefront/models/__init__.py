"""
Storefront Backend — ORM Models
================================

Importing this package registers every table on `Base.metadata`, which is
what `init_database()` and Alembic's env.py rely on.
"""

from storefront.models.analytics import DailyAnalytics, ProductStat
from storefront.models.cart import CartItem
from storefront.models.catalog import Category, Product
from storefront.models.order import Order, OrderItem
from storefront.models.user import User

__all__ = [
    "CartItem",
    "Category",
    "DailyAnalytics",
    "Order",
    "OrderItem",
    "Product",
    "ProductStat",
    "User",
]
