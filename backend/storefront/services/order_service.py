"""
Storefront Backend — Order Service
====================================

What:  Order creation (the checkout write sequence), order history, order
       lines, admin order list and status changes.
Who:   User / order routes.

Order creation sequence (one transaction, committed by the caller):
    1. Validate user and lines
    2. Count the user's previous orders (first order → new customer)
    3. INSERT orders            (ORD-<epoch ms>-<6 hex>, status pending)
    4. INSERT order_items       (name/img snapshot per line)
       UPSERT product_stats     (sold_count, total_revenue per line)
    5. UPSERT analytics         (today's revenue, orders, customers)
    6. DELETE cart_items        (the user's cart)

    Any failure propagates before commit, so get_db_session() rolls back
    the whole sequence and no partial order is left behind.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import NotFoundError, ValidationError
from storefront.models import Order, OrderItem, Product, User
from storefront.models._time import to_utc
from storefront.models.order import STATUS_PENDING, VALID_STATUSES
from storefront.schemas.order import OrderItemResponse, OrderWithUserResponse
from storefront.services._errors import db_errors
from storefront.services.analytics_service import analytics_service
from storefront.services.cart_service import cart_service
from storefront.services.user_service import user_service

logger = logging.getLogger(__name__)


@dataclass
class OrderLine:
    """One line of an order request: product, units and unit price charged."""
    product_id: int
    quantity: int
    price: float


def generate_order_code(now: Optional[datetime] = None) -> str:
    """External order id, e.g. "ORD-1718000000000-3FA9C2"."""
    epoch_ms = int(to_utc(now).timestamp() * 1000)
    return f"ORD-{epoch_ms}-{secrets.token_hex(3).upper()}"


def _validate_lines(items: Iterable) -> List[OrderLine]:
    lines = [OrderLine(item.product_id, item.quantity, item.price) for item in items]
    if not lines:
        raise ValidationError(message="An order needs at least one item", field="items")
    for line in lines:
        if line.quantity < 1:
            raise ValidationError(
                message="Item quantity must be at least 1",
                field="quantity",
                context={"product_id": line.product_id},
            )
        if line.price < 0:
            raise ValidationError(
                message="Item price must be zero or positive",
                field="price",
                context={"product_id": line.product_id},
            )
    return lines


class OrderService:
    """Orders over an AsyncSession (flushes, never commits)."""

    @db_errors("Could not create the order. Please try again.")
    async def create_order(
        self,
        db: AsyncSession,
        user_id: int,
        items: Iterable,
        total_price: Optional[float] = None,
        item_count: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Place an order for `user_id` and clear their cart.

        Args:
            items: Objects with product_id, quantity and price (unit price),
                   e.g. OrderItemInput or OrderLine.
            total_price: Amount charged; defaults to Σ price × quantity.
            item_count: Units ordered; defaults to Σ quantity.
            now: Order time; defaults to the current UTC time.

        Raises:
            NotFoundError: Unknown user.
            ValidationError: Empty order, bad line, or unknown product.
        """
        # ── Step 1: Validate input and references ────────────────────────
        # Nothing is written until every product and the user are known
        now = to_utc(now)
        lines = _validate_lines(items)

        if not await user_service.exists(db, user_id):
            raise NotFoundError(resource="user", resource_id=user_id)

        product_ids = {line.product_id for line in lines}
        products = {
            p.id: p
            for p in (
                await db.execute(select(Product).where(Product.id.in_(product_ids)))
            ).scalars().all()
        }
        missing = sorted(product_ids - products.keys())
        if missing:
            raise ValidationError(
                message=f"Products not found: {', '.join(str(pid) for pid in missing)}",
                field="items",
                context={"product_ids": missing},
            )

        # ── Step 2: First order? ───────────────────────────────────────────
        # Decides whether today's counter gains a new customer
        previous_orders = (
            await db.execute(select(func.count(Order.id)).where(Order.user_id == user_id))
        ).scalar() or 0

        if total_price is None:
            total_price = sum(line.price * line.quantity for line in lines)
        if item_count is None:
            item_count = sum(line.quantity for line in lines)

        # ── Step 3: Order row ───────────────────────────────────────────────
        order = Order(
            user_id=user_id,
            order_code=generate_order_code(now),
            total_price=total_price,
            item_count=item_count,
            status=STATUS_PENDING,
            created_at=now,
        )
        db.add(order)
        await db.flush()
        # flush assigns order.id for the lines below

        # ── Step 4: Lines with product snapshot, per-product counters ─────
        # The snapshot survives product deletion (product_id goes NULL)
        for line in lines:
            product = products[line.product_id]
            db.add(
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    product_name=product.name,
                    product_img=product.img,
                    quantity=line.quantity,
                    price=line.price,
                )
            )
            await analytics_service.record_product_sale(
                db, line.product_id, line.quantity, line.price, now=now
            )

        # ── Step 5: Daily counters ────────────────────────────────────────
        await analytics_service.record_sale(
            db, total_price, is_first_order=previous_orders == 0, now=now
        )
        # ── Step 6: Empty the cart ────────────────────────────────────────
        # The caller's transaction commits all six steps or none
        await cart_service.clear_cart(db, user_id)

        logger.info(
            "Order %s created: user=%s lines=%d total=%s",
            order.order_code,
            user_id,
            len(lines),
            total_price,
        )
        return order

    async def checkout(self, db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> Order:
        """
        Turn the user's cart into an order at current catalog prices.

        Raises:
            ValidationError: The cart is empty.
        """
        cart = await cart_service.get_cart(db, user_id)
        if not cart.items:
            raise ValidationError(message="Cart is empty", field="cart")

        # Cart lines carry the live catalog price
        lines = [OrderLine(item.product_id, item.quantity, item.price) for item in cart.items]
        return await self.create_order(
            db,
            user_id,
            lines,
            total_price=cart.total_price,
            item_count=cart.item_count,
            now=now,
        )

    @db_errors("Could not load orders. Please try again.")
    async def list_user_orders(self, db: AsyncSession, user_id: int) -> List[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    @db_errors("Could not load the order. Please try again.")
    async def get_order(self, db: AsyncSession, order_id: int) -> Order:
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError(resource="order", resource_id=order_id)
        return order

    @db_errors("Could not load the order items. Please try again.")
    async def get_order_items(self, db: AsyncSession, order_id: int) -> List[OrderItemResponse]:
        """
        Lines of an order with product name and image.

        The live catalog entry wins; the snapshot taken at order time is used
        once the product has been deleted.
        """
        await self.get_order(db, order_id)

        rows = (
            await db.execute(
                select(
                    OrderItem,
                    func.coalesce(Product.name, OrderItem.product_name),
                    func.coalesce(Product.img, OrderItem.product_img),
                )
                .outerjoin(Product, OrderItem.product_id == Product.id)
                .where(OrderItem.order_id == order_id)
                .order_by(OrderItem.id)
                .execution_options(populate_existing=True)
            )
        ).all()
        return [
            OrderItemResponse(
                id=item.id,
                order_id=item.order_id,
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
                name=name,
                img=img,
            )
            for item, name, img in rows
        ]

    @db_errors("Could not update the order status. Please try again.")
    async def update_order_status(self, db: AsyncSession, order_id: int, status: str) -> Order:
        """
        Raises:
            ValidationError: status is not pending, completed or cancelled.
            NotFoundError: Unknown order.
        """
        if status not in VALID_STATUSES:
            raise ValidationError(
                message=f"Status must be one of: {', '.join(VALID_STATUSES)}",
                field="status",
                context={"status": status},
            )
        order = await self.get_order(db, order_id)
        previous = order.status
        order.status = status
        await db.flush()
        logger.info("Order %s status %s -> %s", order.order_code, previous, status)
        return order

    @db_errors("Could not load orders. Please try again.")
    async def list_orders_with_users(
        self,
        db: AsyncSession,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[OrderWithUserResponse]:
        """Admin order list, newest first, with the ordering user's name."""
        query = (
            select(Order, User.username)
            .outerjoin(User, Order.user_id == User.id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        if user_id is not None:
            query = query.where(Order.user_id == user_id)
        if status is not None:
            query = query.where(Order.status == status)

        rows = (await db.execute(query)).all()
        return [
            OrderWithUserResponse(
                id=order.id,
                order_code=order.order_code,
                user_id=order.user_id,
                total_price=order.total_price,
                item_count=order.item_count,
                status=order.status,
                created_at=order.created_at,
                username=username,
            )
            for order, username in rows
        ]

    @db_errors("Could not clear the order history. Please try again.")
    async def clear_user_orders(self, db: AsyncSession, user_id: int) -> int:
        """
        Delete every order of a user, lines first.

        Returns:
            Number of orders deleted.
        """
        user_orders = select(Order.id).where(Order.user_id == user_id)
        await db.execute(
            delete(OrderItem)
            .where(OrderItem.order_id.in_(user_orders))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(
            delete(Order)
            .where(Order.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        await db.flush()
        removed = result.rowcount or 0
        logger.info("Cleared %d orders for user %s", removed, user_id)
        return removed


order_service = OrderService()
