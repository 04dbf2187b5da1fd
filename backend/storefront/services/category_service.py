"""
Storefront Backend — Category Service
=======================================

What:  CRUD for product categories.
Who:   Category routes (admin panel + catalog browsing), ProductService
       (category existence checks).

Deletion semantics:
    Deleting a category deletes its products through the FK cascade, and
    with them their cart lines and product_stats rows. Order lines that
    referenced those products keep their name/image snapshot with
    product_id set to NULL.
"""

import logging
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import NotFoundError, ValidationError
from storefront.models import Category, Product
from storefront.services._errors import db_errors

logger = logging.getLogger(__name__)


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(message="Category name must not be empty", field="name")
    return cleaned


class CategoryService:
    """Category CRUD over an AsyncSession (flushes, never commits)."""

    @db_errors("Could not load categories. Please try again.")
    async def list_categories(self, db: AsyncSession) -> List[Category]:
        result = await db.execute(select(Category).order_by(Category.id))
        return list(result.scalars().all())

    @db_errors("Could not load the category. Please try again.")
    async def get_category(self, db: AsyncSession, category_id: int) -> Category:
        """
        Raises:
            NotFoundError: No category with this id.
        """
        result = await db.execute(
            select(Category)
            .where(Category.id == category_id)
            .execution_options(populate_existing=True)
        )
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError(resource="category", resource_id=category_id)
        return category

    @db_errors("Could not check the category. Please try again.")
    async def exists(self, db: AsyncSession, category_id: int) -> bool:
        result = await db.execute(select(Category.id).where(Category.id == category_id))
        return result.scalar_one_or_none() is not None

    @db_errors("Could not create the category. Please try again.")
    async def add_category(self, db: AsyncSession, name: str) -> Category:
        category = Category(name=_clean_name(name))
        db.add(category)
        await db.flush()
        logger.info("Category created: id=%s name=%s", category.id, category.name)
        return category

    @db_errors("Could not update the category. Please try again.")
    async def update_category(self, db: AsyncSession, category_id: int, name: str) -> Category:
        category = await self.get_category(db, category_id)
        category.name = _clean_name(name)
        await db.flush()
        logger.info("Category %s renamed to %s", category_id, category.name)
        return category

    @db_errors("Could not delete the category. Please try again.")
    async def delete_category(self, db: AsyncSession, category_id: int) -> int:
        """
        Delete a category and, by cascade, its products.

        Returns:
            Number of products removed along with the category.

        Raises:
            NotFoundError: No category with this id.
        """
        await self.get_category(db, category_id)

        # Counted before the delete; the cascade removes them with the category
        product_count = (
            await db.execute(
                select(func.count(Product.id)).where(Product.category_id == category_id)
            )
        ).scalar() or 0

        await db.execute(delete(Category).where(Category.id == category_id))
        await db.flush()

        logger.info(
            "Category %s deleted (%d products removed by cascade)",
            category_id,
            product_count,
        )
        return product_count


category_service = CategoryService()
