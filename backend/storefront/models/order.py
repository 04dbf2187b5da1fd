"""
Storefront Backend — Order Models
===================================

What:  ORM models for `orders` and `order_items`.
Who:   OrderService writes them in the checkout sequence; AnalyticsService
       reads them for revenue, top-product and customer aggregates.

Table Design Rationale:
    - order_code: external, human-facing identifier ("ORD-<epoch ms>-<hex>"),
      UNIQUE. The integer id stays the internal key used by order_items.
    - total_price / item_count are stored, not recomputed, so the order
      reflects what was charged even if catalog prices change later.
    - status: 'pending' → 'completed' | 'cancelled'.
    - order_items.product_id is ON DELETE SET NULL and the line carries a
      snapshot of product name and image, so history survives catalog edits.

    Index on orders.created_at DESC:
        Order lists and period aggregates (today / month / year) filter and
        sort on created_at.
"""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base
from storefront.models._time import utcnow

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
VALID_STATUSES = (STATUS_PENDING, STATUS_COMPLETED, STATUS_CANCELLED)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_user_id", "user_id"),
        Index("idx_orders_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    order_code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    total_price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    item_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=STATUS_PENDING,
        server_default=STATUS_PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, code='{self.order_code}', "
            f"status='{self.status}', total={self.total_price})>"
        )


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        Index("idx_order_items_order_id", "order_id"),
        Index("idx_order_items_product_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
    )
    product_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    product_img: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<OrderItem(id={self.id}, order_id={self.order_id}, "
            f"product_id={self.product_id}, quantity={self.quantity})>"
        )
