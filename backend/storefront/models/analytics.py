"""
Storefront Backend — Analytics Counter Models
===============================================

What:  Running counters maintained by order creation:
       - `analytics`: one row per UTC day (revenue, orders, new customers)
       - `product_stats`: one row per product (units sold, revenue)

These are denormalized totals. The live aggregates in AnalyticsService
(revenue summary, top products) are computed from orders/order_items
instead; the counters back the "daily" and "product stats" admin views.
Cancelling an order does not decrement them.
"""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base
from storefront.models._time import utcnow


class DailyAnalytics(Base):
    __tablename__ = "analytics"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # UTC calendar day, "YYYY-MM-DD"
    date: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    total_revenue: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_orders: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_customers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<DailyAnalytics(date='{self.date}', revenue={self.total_revenue}, "
            f"orders={self.total_orders})>"
        )


class ProductStat(Base):
    __tablename__ = "product_stats"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    sold_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_revenue: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<ProductStat(product_id={self.product_id}, sold={self.sold_count})>"
