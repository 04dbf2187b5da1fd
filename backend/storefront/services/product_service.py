"""
Storefront Backend — Product Service
======================================

What:  Product CRUD, per-category listing and keyword search.
Who:   Product and category routes; CartService / OrderService for
       product lookups.

Search:
    search_products() matches the keyword as a case-insensitive substring
    of the product name OR its category name. LIKE wildcards typed by the
    user (% and _) are escaped so they match literally.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import NotFoundError, ValidationError
from storefront.models import Category, Product
from storefront.services._errors import db_errors
from storefront.services.category_service import category_service

logger = logging.getLogger(__name__)

_LIKE_ESCAPE = "\\"


def _like_pattern(keyword: str) -> str:
    escaped = (
        keyword.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _validate_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(message="Product name must not be empty", field="name")
    return cleaned


def _validate_price(price: float) -> float:
    if price is None or price < 0:
        raise ValidationError(message="Product price must be zero or positive", field="price")
    return float(price)


class ProductService:
    """Product operations over an AsyncSession (flushes, never commits)."""

    async def _require_category(self, db: AsyncSession, category_id: int) -> None:
        if not await category_service.exists(db, category_id):
            raise ValidationError(
                message=f"Category with ID '{category_id}' does not exist",
                field="category_id",
            )

    @db_errors("Could not load products. Please try again.")
    async def list_products(self, db: AsyncSession) -> List[Product]:
        result = await db.execute(select(Product).order_by(Product.id))
        return list(result.scalars().all())

    @db_errors("Could not load the product. Please try again.")
    async def get_product(self, db: AsyncSession, product_id: int) -> Product:
        result = await db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError(resource="product", resource_id=product_id)
        return product

    @db_errors("Could not create the product. Please try again.")
    async def add_product(
        self,
        db: AsyncSession,
        name: str,
        price: float,
        category_id: int,
        img: Optional[str] = None,
    ) -> Product:
        """
        Raises:
            ValidationError: Blank name, negative price or unknown category.
        """
        product = Product(
            name=_validate_name(name),
            price=_validate_price(price),
            img=img,
            category_id=category_id,
        )
        await self._require_category(db, category_id)

        db.add(product)
        await db.flush()
        logger.info("Product created: id=%s name=%s", product.id, product.name)
        return product

    @db_errors("Could not update the product. Please try again.")
    async def update_product(
        self,
        db: AsyncSession,
        product_id: int,
        name: Optional[str] = None,
        price: Optional[float] = None,
        img: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> Product:
        """Partial update; arguments left as None keep the current value."""
        product = await self.get_product(db, product_id)

        if name is not None:
            product.name = _validate_name(name)
        if price is not None:
            product.price = _validate_price(price)
        if img is not None:
            product.img = img
        if category_id is not None and category_id != product.category_id:
            await self._require_category(db, category_id)
            product.category_id = category_id

        await db.flush()
        logger.info("Product %s updated", product_id)
        return product

    @db_errors("Could not delete the product. Please try again.")
    async def delete_product(self, db: AsyncSession, product_id: int) -> None:
        """Delete a product; its cart lines and sales counters cascade."""
        await self.get_product(db, product_id)
        await db.execute(delete(Product).where(Product.id == product_id))
        await db.flush()
        logger.info("Product %s deleted", product_id)

    @db_errors("Could not load products. Please try again.")
    async def list_products_by_category(self, db: AsyncSession, category_id: int) -> List[Product]:
        result = await db.execute(
            select(Product).where(Product.category_id == category_id).order_by(Product.id)
        )
        return list(result.scalars().all())

    @db_errors("Could not search products. Please try again.")
    async def search_products(self, db: AsyncSession, keyword: Optional[str]) -> List[Product]:
        """
        Products whose name or category name contains `keyword`.

        An empty or whitespace-only keyword returns the full catalog.
        """
        term = (keyword or "").strip()
        if not term:
            return await self.list_products(db)

        # % and _ typed by the user match literally
        pattern = _like_pattern(term)
        result = await db.execute(
            select(Product)
            # Outer join keeps products whose category_id is NULL
            .outerjoin(Category, Product.category_id == Category.id)
            .where(
                or_(
                    Product.name.ilike(pattern, escape=_LIKE_ESCAPE),
                    Category.name.ilike(pattern, escape=_LIKE_ESCAPE),
                )
            )
            .order_by(Product.id)
        )
        products = list(result.scalars().all())
        logger.debug("Search '%s' matched %d products", term, len(products))
        return products


product_service = ProductService()
