"""
Storefront Backend — Cart Service
===================================

What:  Per-user shopping cart: add, view, change quantity, remove, clear.
Who:   Cart routes; OrderService (checkout reads the cart, order creation
       clears it).

Cart lines:
    One line per (user, product). Adding a product that is already in the
    cart increases that line's quantity; added_at keeps the time the line
    was first created. The cart view joins each line with the product's
    current name, price and image.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import NotFoundError, ValidationError
from storefront.models import CartItem, Product
from storefront.schemas.cart import CartItemResponse, CartResponse
from storefront.services._errors import db_errors
from storefront.services.user_service import user_service

logger = logging.getLogger(__name__)


class CartService:

    async def _require_user(self, db: AsyncSession, user_id: int) -> None:
        if not await user_service.exists(db, user_id):
            raise NotFoundError(resource="user", resource_id=user_id)

    async def _get_line(self, db: AsyncSession, cart_item_id: int) -> CartItem:
        result = await db.execute(
            select(CartItem)
            .where(CartItem.id == cart_item_id)
            .execution_options(populate_existing=True)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError(resource="cart item", resource_id=cart_item_id)
        return item

    @db_errors("Could not add the product to the cart. Please try again.")
    async def add_to_cart(
        self,
        db: AsyncSession,
        user_id: int,
        product_id: int,
        quantity: int = 1,
    ) -> CartItem:
        """
        Add `quantity` units of a product to the user's cart.

        Returns:
            The new or merged cart line.

        Raises:
            ValidationError: quantity < 1.
            NotFoundError: Unknown user or product.
        """
        if quantity < 1:
            raise ValidationError(message="Quantity must be at least 1", field="quantity")

        await self._require_user(db, user_id)
        product_exists = (
            await db.execute(select(Product.id).where(Product.id == product_id))
        ).scalar_one_or_none()
        if product_exists is None:
            raise NotFoundError(resource="product", resource_id=product_id)

        # One line per (user, product): a repeat add bumps the quantity
        # and keeps the original added_at
        existing = (
            await db.execute(
                select(CartItem)
                .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
                .execution_options(populate_existing=True)
            )
        ).scalars().first()

        if existing is not None:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
            db.add(item)

        await db.flush()
        logger.info(
            "Cart: user=%s product=%s quantity=%d (line %s)",
            user_id,
            product_id,
            item.quantity,
            item.id,
        )
        return item

    @db_errors("Could not load the cart. Please try again.")
    async def get_cart(self, db: AsyncSession, user_id: int) -> CartResponse:
        """The user's cart lines with product details, newest first, plus totals."""
        await self._require_user(db, user_id)

        # Inner join: lines whose product was deleted are already gone by cascade
        rows = (
            await db.execute(
                select(CartItem, Product.name, Product.price, Product.img)
                .join(Product, CartItem.product_id == Product.id)
                .where(CartItem.user_id == user_id)
                .order_by(CartItem.added_at.desc(), CartItem.id.desc())
            )
        ).all()

        items = [
            CartItemResponse(
                id=line.id,
                user_id=line.user_id,
                product_id=line.product_id,
                quantity=line.quantity,
                added_at=line.added_at,
                name=name,
                price=price,
                img=img,
                line_total=price * line.quantity,
            )
            for line, name, price, img in rows
        ]
        # Totals use the current catalog price, not the price at add time
        return CartResponse(
            items=items,
            total_price=sum(item.line_total for item in items),
            item_count=sum(item.quantity for item in items),
        )

    @db_errors("Could not update the cart. Please try again.")
    async def update_cart_item(
        self,
        db: AsyncSession,
        cart_item_id: int,
        quantity: int,
    ) -> Optional[CartItem]:
        """
        Set a line's quantity. A quantity of 0 or less removes the line.

        Returns:
            The updated line, or None when it was removed.
        """
        item = await self._get_line(db, cart_item_id)

        if quantity <= 0:
            await db.execute(delete(CartItem).where(CartItem.id == cart_item_id))
            await db.flush()
            logger.info("Cart line %s removed (quantity %d)", cart_item_id, quantity)
            return None

        item.quantity = quantity
        await db.flush()
        return item

    @db_errors("Could not remove the cart item. Please try again.")
    async def remove_cart_item(self, db: AsyncSession, cart_item_id: int) -> None:
        await self._get_line(db, cart_item_id)
        await db.execute(delete(CartItem).where(CartItem.id == cart_item_id))
        await db.flush()
        logger.info("Cart line %s removed", cart_item_id)

    @db_errors("Could not clear the cart. Please try again.")
    async def clear_cart(self, db: AsyncSession, user_id: int) -> int:
        """Remove every line of the user's cart; returns how many were removed."""
        result = await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
        await db.flush()
        removed = result.rowcount or 0
        logger.info("Cart cleared for user %s (%d lines)", user_id, removed)
        return removed


cart_service = CartService()
