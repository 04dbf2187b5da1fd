"""
Storefront Backend — Cart Model
================================

What:  ORM model for `cart_items`, one row per (user, product) line.

Both foreign keys cascade: removing a user or a product removes the lines
that reference it. The cart view is ordered by added_at DESC.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base
from storefront.models._time import utcnow


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        Index("idx_cart_items_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<CartItem(id={self.id}, user_id={self.user_id}, "
            f"product_id={self.product_id}, quantity={self.quantity})>"
        )
