"""
Storefront Backend — Order Service Tests
==========================================

What:  The order-creation write sequence and order queries.

What we test:
    ✅ Order row: code format, defaults for total and item count, pending status
    ✅ Side effects: order lines with snapshots, product counters,
       daily counters (first order counts a new customer), cart cleared
    ✅ Checkout from the cart, empty cart rejected
    ✅ Live product details preferred over the snapshot
    ✅ Status changes, admin listing filters, clearing a user's history
"""

import re
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from storefront.exceptions import NotFoundError, ValidationError
from storefront.models import DailyAnalytics, OrderItem, ProductStat
from storefront.schemas.order import OrderItemInput, OrderResponse
from storefront.services.cart_service import cart_service
from storefront.services.order_service import OrderLine, OrderService, generate_order_code
from storefront.services.product_service import product_service
from storefront.services.user_service import user_service

ORDER_CODE = re.compile(r"^ORD-\d{13}-[0-9A-F]{6}$")


async def _customer(db_session, username="judau"):
    return await user_service.register(db_session, username, "zz12345")


class TestOrderCode:

    def test_format(self, fixed_now):
        code = generate_order_code(fixed_now)
        assert ORDER_CODE.match(code)
        assert code.startswith(f"ORD-{int(fixed_now.timestamp() * 1000)}-")

    def test_codes_differ(self, fixed_now):
        assert generate_order_code(fixed_now) != generate_order_code(fixed_now)


class TestCreateOrder:

    def setup_method(self):
        self.service = OrderService()

    @pytest.mark.asyncio
    async def test_creates_pending_order_with_defaults(self, db_session, fixed_now):
        user = await _customer(db_session)
        order = await self.service.create_order(
            db_session,
            user.id,
            [
                OrderItemInput(product_id=1, quantity=2, price=250000),
                OrderItemInput(product_id=4, quantity=1, price=120000),
            ],
            now=fixed_now,
        )

        assert ORDER_CODE.match(order.order_code)
        assert order.status == "pending"
        assert order.user_id == user.id
        assert order.total_price == 620000
        assert order.item_count == 3

    @pytest.mark.asyncio
    async def test_explicit_totals_are_kept(self, db_session):
        user = await _customer(db_session)
        order = await self.service.create_order(
            db_session,
            user.id,
            [OrderLine(product_id=1, quantity=1, price=250000)],
            total_price=200000,
            item_count=1,
        )
        assert order.total_price == 200000

    @pytest.mark.asyncio
    async def test_lines_snapshot_product(self, db_session):
        user = await _customer(db_session)
        order = await self.service.create_order(
            db_session, user.id, [OrderLine(product_id=2, quantity=1, price=1000000)]
        )

        lines = (
            await db_session.execute(select(OrderItem).where(OrderItem.order_id == order.id))
        ).scalars().all()
        assert len(lines) == 1
        assert lines[0].product_name == "Astray Gold Frame"
        assert lines[0].product_img == "Astray_gold.jpg"
        assert lines[0].price == 1000000

    @pytest.mark.asyncio
    async def test_updates_product_counters(self, db_session):
        user = await _customer(db_session)
        await self.service.create_order(
            db_session, user.id, [OrderLine(product_id=5, quantity=2, price=980000)]
        )
        await self.service.create_order(
            db_session, user.id, [OrderLine(product_id=5, quantity=1, price=900000)]
        )

        stat = (
            await db_session.execute(select(ProductStat).where(ProductStat.product_id == 5))
        ).scalar_one()
        assert stat.sold_count == 3
        assert stat.total_revenue == 2 * 980000 + 900000

    @pytest.mark.asyncio
    async def test_updates_daily_counters(self, db_session, fixed_now):
        first = await _customer(db_session, "judau")
        second = await _customer(db_session, "roux")

        await self.service.create_order(
            db_session, first.id, [OrderLine(1, 1, 250000)], now=fixed_now
        )
        await self.service.create_order(
            db_session, first.id, [OrderLine(4, 1, 120000)], now=fixed_now
        )
        await self.service.create_order(
            db_session, second.id, [OrderLine(3, 1, 490000)], now=fixed_now
        )

        row = (
            await db_session.execute(
                select(DailyAnalytics).where(DailyAnalytics.date == "2024-06-15")
            )
        ).scalar_one()
        assert row.total_orders == 3
        assert row.total_revenue == 250000 + 120000 + 490000
        # Repeat orders from the same user are not new customers
        assert row.total_customers == 2

    @pytest.mark.asyncio
    async def test_clears_cart(self, db_session):
        user = await _customer(db_session)
        await cart_service.add_to_cart(db_session, user.id, 1, 1)

        await self.service.create_order(db_session, user.id, [OrderLine(3, 1, 490000)])

        assert (await cart_service.get_cart(db_session, user.id)).items == []

    @pytest.mark.asyncio
    async def test_empty_order_rejected(self, db_session):
        user = await _customer(db_session)
        with pytest.raises(ValidationError):
            await self.service.create_order(db_session, user.id, [])

    @pytest.mark.asyncio
    async def test_bad_line_rejected(self, db_session):
        user = await _customer(db_session)
        with pytest.raises(ValidationError):
            await self.service.create_order(db_session, user.id, [OrderLine(1, 0, 250000)])
        with pytest.raises(ValidationError):
            await self.service.create_order(db_session, user.id, [OrderLine(1, 1, -5)])

    @pytest.mark.asyncio
    async def test_unknown_product_rejected(self, db_session):
        user = await _customer(db_session)
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_order(
                db_session, user.id, [OrderLine(1, 1, 250000), OrderLine(404, 1, 10)]
            )
        assert exc_info.value.context["product_ids"] == [404]
        assert await self.service.list_user_orders(db_session, user.id) == []

    @pytest.mark.asyncio
    async def test_unknown_user_rejected(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.create_order(db_session, 404, [OrderLine(1, 1, 250000)])


class TestCheckout:

    def setup_method(self):
        self.service = OrderService()

    @pytest.mark.asyncio
    async def test_checkout_uses_cart_at_current_prices(self, db_session):
        user = await _customer(db_session)
        await cart_service.add_to_cart(db_session, user.id, 1, 2)
        await cart_service.add_to_cart(db_session, user.id, 2, 1)
        await product_service.update_product(db_session, 2, price=1000000)

        order = await self.service.checkout(db_session, user.id)

        assert order.total_price == 2 * 250000 + 1000000
        assert order.item_count == 3
        assert (await cart_service.get_cart(db_session, user.id)).items == []
        items = await self.service.get_order_items(db_session, order.id)
        assert sorted((i.product_id, i.quantity, i.price) for i in items) == [
            (1, 2, 250000),
            (2, 1, 1000000),
        ]

    @pytest.mark.asyncio
    async def test_empty_cart_rejected(self, db_session):
        user = await _customer(db_session)
        with pytest.raises(ValidationError):
            await self.service.checkout(db_session, user.id)


class TestOrderQueries:

    def setup_method(self):
        self.service = OrderService()

    @pytest.mark.asyncio
    async def test_user_orders_newest_first(self, db_session, fixed_now):
        user = await _customer(db_session)
        older = await self.service.create_order(
            db_session, user.id, [OrderLine(1, 1, 250000)], now=fixed_now - timedelta(days=3)
        )
        newer = await self.service.create_order(
            db_session, user.id, [OrderLine(1, 1, 250000)], now=fixed_now
        )

        orders = await self.service.list_user_orders(db_session, user.id)
        assert [o.id for o in orders] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_get_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_order(db_session, 404)

    @pytest.mark.asyncio
    async def test_items_prefer_live_product(self, db_session):
        user = await _customer(db_session)
        order = await self.service.create_order(db_session, user.id, [OrderLine(4, 1, 120000)])
        await product_service.update_product(db_session, 4, name="Astray Blue Frame", img="blue.png")

        items = await self.service.get_order_items(db_session, order.id)
        assert items[0].name == "Astray Blue Frame"
        assert items[0].img == "blue.png"

    @pytest.mark.asyncio
    async def test_items_fall_back_to_snapshot(self, db_session):
        user = await _customer(db_session)
        order = await self.service.create_order(db_session, user.id, [OrderLine(4, 1, 120000)])
        await product_service.delete_product(db_session, 4)

        items = await self.service.get_order_items(db_session, order.id)
        assert items[0].product_id is None
        assert items[0].name == "Astray noname"
        assert items[0].img == "astray_noname.webp"

    @pytest.mark.asyncio
    async def test_items_of_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_order_items(db_session, 404)

    @pytest.mark.asyncio
    async def test_update_status(self, db_session):
        user = await _customer(db_session)
        order = await self.service.create_order(db_session, user.id, [OrderLine(1, 1, 250000)])

        updated = await self.service.update_order_status(db_session, order.id, "completed")
        assert updated.status == "completed"

        updated = await self.service.update_order_status(db_session, order.id, "cancelled")
        assert updated.status == "cancelled"

    @pytest.mark.asyncio
    async def test_update_invalid_status(self, db_session):
        user = await _customer(db_session)
        order = await self.service.create_order(db_session, user.id, [OrderLine(1, 1, 250000)])
        with pytest.raises(ValidationError):
            await self.service.update_order_status(db_session, order.id, "shipped")

    @pytest.mark.asyncio
    async def test_update_status_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.update_order_status(db_session, 404, "completed")

    @pytest.mark.asyncio
    async def test_admin_list_with_filters(self, db_session, fixed_now):
        judau = await _customer(db_session, "judau")
        roux = await _customer(db_session, "roux")
        first = await self.service.create_order(
            db_session, judau.id, [OrderLine(1, 1, 250000)], now=fixed_now - timedelta(hours=2)
        )
        second = await self.service.create_order(
            db_session, roux.id, [OrderLine(2, 1, 1100000)], now=fixed_now - timedelta(hours=1)
        )
        third = await self.service.create_order(
            db_session, judau.id, [OrderLine(3, 1, 490000)], now=fixed_now
        )
        await self.service.update_order_status(db_session, second.id, "completed")

        everything = await self.service.list_orders_with_users(db_session)
        assert [o.id for o in everything] == [third.id, second.id, first.id]
        assert [o.username for o in everything] == ["judau", "roux", "judau"]

        mine = await self.service.list_orders_with_users(db_session, user_id=judau.id)
        assert [o.id for o in mine] == [third.id, first.id]

        completed = await self.service.list_orders_with_users(db_session, status="completed")
        assert [o.id for o in completed] == [second.id]

    @pytest.mark.asyncio
    async def test_clear_user_orders(self, db_session):
        judau = await _customer(db_session, "judau")
        roux = await _customer(db_session, "roux")
        await self.service.create_order(db_session, judau.id, [OrderLine(1, 1, 250000)])
        await self.service.create_order(db_session, judau.id, [OrderLine(2, 1, 1100000)])
        kept = await self.service.create_order(db_session, roux.id, [OrderLine(3, 1, 490000)])

        assert await self.service.clear_user_orders(db_session, judau.id) == 2

        assert await self.service.list_user_orders(db_session, judau.id) == []
        remaining_lines = (await db_session.execute(select(OrderItem))).scalars().all()
        assert [line.order_id for line in remaining_lines] == [kept.id]

    @pytest.mark.asyncio
    async def test_naive_now_treated_as_utc(self, db_session):
        user = await _customer(db_session)
        order = await self.service.create_order(
            db_session, user.id, [OrderLine(1, 1, 250000)], now=datetime(2024, 1, 2, 3, 4)
        )
        expected_ms = int(datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc).timestamp() * 1000)
        assert order.order_code.startswith(f"ORD-{expected_ms}-")


class TestOrderResponse:

    def test_reloaded_timestamp_serialized_as_utc(self):
        # SQLite returns DATETIME columns without tzinfo
        response = OrderResponse(
            id=1,
            order_code="ORD-1-ABCDEF",
            user_id=1,
            total_price=10,
            item_count=1,
            status="pending",
            created_at=datetime(2024, 6, 15, 12, 0),
        )
        assert response.created_at == datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    def test_other_offsets_converted(self):
        response = OrderResponse(
            id=1,
            order_code="ORD-1-ABCDEF",
            user_id=1,
            total_price=10,
            item_count=1,
            status="pending",
            created_at=datetime(2024, 6, 15, 14, 0, tzinfo=timezone(timedelta(hours=2))),
        )
        assert response.created_at == datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert response.created_at.utcoffset() == timedelta(0)
