"""
Storefront Backend — Catalog Models
=====================================

What:  ORM models for the `categories` and `products` tables.
Who:   CategoryService / ProductService for CRUD, AnalyticsService for
       category-level aggregates, Alembic for schema management.

Table Design:
    - Category ids are explicit in the seed data (1 Astray, 2 Unicorn), so
      `categories.id` is a plain INTEGER PRIMARY KEY.
    - products.category_id → categories.id ON DELETE CASCADE: deleting a
      category removes its products (and, transitively, their cart lines
      and sales counters).
    - price is REAL, matching the amounts the catalog is priced in (whole
      currency units).
"""

from sqlalchemy import Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


class Category(Base):
    """A product category shown as a catalog section."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class Product(Base):
    """
    A sellable catalog item.

    Query Patterns:
        - Products of a category: WHERE category_id = :id
          → Uses idx_products_category_id
        - Keyword search: products.name LIKE :kw OR categories.name LIKE :kw
    """

    __tablename__ = "products"
    __table_args__ = (
        Index("idx_products_category_id", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # Image key (file name); resolving it to an asset is a client concern
    img: Mapped[str | None] = mapped_column(String(255), nullable=True)

    category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"
