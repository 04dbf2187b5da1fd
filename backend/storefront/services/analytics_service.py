"""
Storefront Backend — Analytics Service
========================================

What:  Admin dashboard aggregates and the running sales counters.
Who:   Analytics routes (admin panel); OrderService calls record_sale() and
       record_product_sale() while creating an order.

Two data sources:
    1. Live aggregates, computed ad hoc from orders / order_items / users:
       get_revenue_summary, get_top_products, get_category_performance,
       list_users_with_stats.
    2. Counter tables (`analytics`, `product_stats`) incremented at order
       time: get_analytics_data, get_product_stats. get_category_stats
       aggregates order lines per category, including categories that
       never sold.

Periods:
    Day, month and year are UTC calendar ranges derived from `now`
    (injectable for tests). Range filters are half-open: start <= t < end.
    Orders of every status count toward revenue.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import settings
from storefront.models import Category, DailyAnalytics, Order, OrderItem, Product, ProductStat, User
from storefront.models._time import to_utc
from storefront.schemas.analytics import (
    AnalyticsData,
    CategoryPerformance,
    CategoryStat,
    PeriodTotals,
    ProductSales,
    RevenueSummary,
    UserWithStats,
)
from storefront.services._errors import db_errors

logger = logging.getLogger(__name__)


def period_bounds(now: Optional[datetime] = None) -> Dict[str, Tuple[datetime, datetime]]:
    """
    UTC [start, end) ranges for the day, month and year containing `now`.

    Example:
        now = 2024-02-29T13:05Z
        → month = (2024-02-01T00:00Z, 2024-03-01T00:00Z)
    """
    now = to_utc(now)
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    month_start = day_start.replace(day=1)
    if month_start.month == 12:
        month_end = month_start.replace(year=month_start.year + 1, month=1)
    else:
        month_end = month_start.replace(month=month_start.month + 1)
    year_start = month_start.replace(month=1)
    return {
        "day": (day_start, day_start + timedelta(days=1)),
        "month": (month_start, month_end),
        "year": (year_start, year_start.replace(year=year_start.year + 1)),
    }


def day_key(now: Optional[datetime] = None) -> str:
    """Counter-table key for the UTC day containing `now` ("YYYY-MM-DD")."""
    return to_utc(now).date().isoformat()


class AnalyticsService:
    """Aggregates over an AsyncSession; counter upserts flush, never commit."""

    async def _order_totals(
        self,
        db: AsyncSession,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Tuple[float, int]:
        query = select(func.coalesce(func.sum(Order.total_price), 0), func.count(Order.id))
        if start is not None:
            query = query.where(Order.created_at >= start, Order.created_at < end)
        revenue, orders = (await db.execute(query)).one()
        return float(revenue), int(orders)

    @db_errors("Could not compute the revenue summary. Please try again.")
    async def get_revenue_summary(
        self,
        db: AsyncSession,
        now: Optional[datetime] = None,
    ) -> RevenueSummary:
        bounds = period_bounds(now)

        # ── Period totals over the orders table ─────────────────────────────
        today_revenue, today_orders = await self._order_totals(db, *bounds["day"])
        month_revenue, month_orders = await self._order_totals(db, *bounds["month"])
        year_revenue, _ = await self._order_totals(db, *bounds["year"])
        total_revenue, total_orders = await self._order_totals(db)

        # ── Customer base ───────────────────────────────────────────────────
        total_customers = (
            await db.execute(select(func.count(distinct(Order.user_id))))
        ).scalar() or 0
        total_users = (await db.execute(select(func.count(User.id)))).scalar() or 0
        total_items_sold = (
            await db.execute(select(func.coalesce(func.sum(OrderItem.quantity), 0)))
        ).scalar() or 0

        # A customer is new this month when their earliest order falls inside it
        first_orders = (
            select(func.min(Order.created_at).label("first_order_at"))
            .group_by(Order.user_id)
            .subquery()
        )
        month_start, month_end = bounds["month"]
        new_customers = (
            await db.execute(
                select(func.count()).select_from(first_orders).where(
                    first_orders.c.first_order_at >= month_start,
                    first_orders.c.first_order_at < month_end,
                )
            )
        ).scalar() or 0

        return RevenueSummary(
            today_revenue=today_revenue,
            today_orders=today_orders,
            month_revenue=month_revenue,
            month_orders=month_orders,
            year_revenue=year_revenue,
            total_orders=total_orders,
            total_customers=total_customers,
            total_users=total_users,
            total_items_sold=total_items_sold,
            avg_order_value=total_revenue / total_orders if total_orders else 0,
            conversion_rate=total_customers / total_users * 100 if total_users else 0,
            average_items_per_order=total_items_sold / total_orders if total_orders else 0,
            new_customers_this_month=new_customers,
            total_revenue=total_revenue,
        )

    @db_errors("Could not load top products. Please try again.")
    async def get_top_products(self, db: AsyncSession, limit: Optional[int] = None) -> List[ProductSales]:
        """Best sellers by units sold, from order lines of products still in the catalog."""
        if limit is None:
            limit = settings.top_products_limit
        sold = func.sum(OrderItem.quantity).label("sold")
        revenue = func.sum(OrderItem.quantity * OrderItem.price).label("revenue")

        rows = (
            await db.execute(
                select(Product.id, Product.name, sold, revenue)
                .select_from(OrderItem)
                .join(Product, OrderItem.product_id == Product.id)
                .group_by(Product.id, Product.name)
                .order_by(sold.desc(), Product.id)
                .limit(limit)
            )
        ).all()
        return [
            ProductSales(id=pid, name=name, sold=s or 0, revenue=r or 0)
            for pid, name, s, r in rows
        ]

    @db_errors("Could not load category performance. Please try again.")
    async def get_category_performance(self, db: AsyncSession) -> List[CategoryPerformance]:
        """Per category: distinct orders that contain it and revenue, highest revenue first."""
        orders = func.count(distinct(OrderItem.order_id)).label("orders")
        revenue = func.sum(OrderItem.quantity * OrderItem.price).label("revenue")

        rows = (
            await db.execute(
                select(Category.name, orders, revenue)
                .select_from(OrderItem)
                .join(Product, OrderItem.product_id == Product.id)
                .join(Category, Product.category_id == Category.id)
                .group_by(Category.id, Category.name)
                .order_by(revenue.desc(), Category.id)
            )
        ).all()
        return [CategoryPerformance(name=name, orders=o, revenue=r or 0) for name, o, r in rows]

    @db_errors("Could not load users. Please try again.")
    async def list_users_with_stats(self, db: AsyncSession) -> List[UserWithStats]:
        order_count = func.count(Order.id).label("order_count")
        total_revenue = func.coalesce(func.sum(Order.total_price), 0).label("total_revenue")
        last_order_at = func.max(Order.created_at).label("last_order_at")

        # Outer join so users who never ordered still appear, with zeros;
        # NULL last_order_at sorts after every real timestamp
        rows = (
            await db.execute(
                select(User, order_count, total_revenue, last_order_at)
                .outerjoin(Order, Order.user_id == User.id)
                .group_by(User.id)
                .order_by(last_order_at.is_(None), last_order_at.desc(), User.id.desc())
            )
        ).all()
        return [
            UserWithStats(
                id=user.id,
                username=user.username,
                role=user.role,
                created_at=user.created_at,
                order_count=count,
                total_revenue=revenue,
                last_order_at=last,
            )
            for user, count, revenue, last in rows
        ]

    @db_errors("Could not record the sale. Please try again.")
    async def record_sale(
        self,
        db: AsyncSession,
        total_price: float,
        is_first_order: bool,
        now: Optional[datetime] = None,
    ) -> DailyAnalytics:
        """
        Add one order to the counters of the UTC day containing `now`.

        total_customers grows only for a customer's first ever order.
        """
        now = to_utc(now)
        key = day_key(now)
        row = (
            await db.execute(
                select(DailyAnalytics)
                .where(DailyAnalytics.date == key)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()

        # Select-then-increment upsert keyed on the UTC day
        if row is None:
            row = DailyAnalytics(
                date=key,
                total_revenue=0,
                total_orders=0,
                total_customers=0,
            )
            db.add(row)

        row.total_revenue += total_price
        row.total_orders += 1
        if is_first_order:
            row.total_customers += 1
        row.updated_at = now

        await db.flush()
        logger.debug("Daily counters %s: revenue=%s orders=%d", key, row.total_revenue, row.total_orders)
        return row

    @db_errors("Could not record the product sale. Please try again.")
    async def record_product_sale(
        self,
        db: AsyncSession,
        product_id: int,
        quantity: int,
        price: float,
        now: Optional[datetime] = None,
    ) -> ProductStat:
        """Add `quantity` units at unit `price` to the product's sales counter."""
        stat = (
            await db.execute(
                select(ProductStat)
                .where(ProductStat.product_id == product_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()

        if stat is None:
            stat = ProductStat(product_id=product_id, sold_count=0, total_revenue=0)
            db.add(stat)

        stat.sold_count += quantity
        stat.total_revenue += price * quantity
        stat.updated_at = to_utc(now)

        await db.flush()
        return stat

    @db_errors("Could not load analytics. Please try again.")
    async def get_analytics_data(
        self,
        db: AsyncSession,
        now: Optional[datetime] = None,
    ) -> AnalyticsData:
        """Today, month-to-date and all-time totals from the daily counters, plus distinct customers."""
        now = to_utc(now)
        bounds = period_bounds(now)
        month_start, month_end = (day_key(d) for d in bounds["month"])

        async def totals(*conditions) -> PeriodTotals:
            revenue, orders = (
                await db.execute(
                    select(
                        func.coalesce(func.sum(DailyAnalytics.total_revenue), 0),
                        func.coalesce(func.sum(DailyAnalytics.total_orders), 0),
                    ).where(*conditions)
                )
            ).one()
            return PeriodTotals(revenue=revenue, orders=orders)

        # Distinct ordering users, live: the daily customer counters only ever grow
        total_customers = (
            await db.execute(select(func.count(distinct(Order.user_id))))
        ).scalar() or 0

        return AnalyticsData(
            today=await totals(DailyAnalytics.date == day_key(now)),
            month=await totals(DailyAnalytics.date >= month_start, DailyAnalytics.date < month_end),
            all_time=await totals(),
            total_customers=total_customers,
        )

    @db_errors("Could not load product stats. Please try again.")
    async def get_product_stats(self, db: AsyncSession, limit: Optional[int] = None) -> List[ProductSales]:
        if limit is None:
            limit = settings.product_stats_limit
        rows = (
            await db.execute(
                select(Product.id, Product.name, ProductStat.sold_count, ProductStat.total_revenue)
                .select_from(ProductStat)
                .join(Product, ProductStat.product_id == Product.id)
                .order_by(ProductStat.sold_count.desc(), Product.id)
                .limit(limit)
            )
        ).all()
        return [
            ProductSales(id=pid, name=name, sold=sold, revenue=revenue)
            for pid, name, sold, revenue in rows
        ]

    @db_errors("Could not load category stats. Please try again.")
    async def get_category_stats(self, db: AsyncSession) -> List[CategoryStat]:
        """Every category with its order-line count and revenue; unsold categories show zeros."""
        lines = func.count(OrderItem.id).label("orders")
        revenue = func.coalesce(func.sum(OrderItem.quantity * OrderItem.price), 0).label("revenue")

        rows = (
            await db.execute(
                select(Category.id, Category.name, lines, revenue)
                .outerjoin(Product, Product.category_id == Category.id)
                .outerjoin(OrderItem, OrderItem.product_id == Product.id)
                .group_by(Category.id, Category.name)
                .order_by(lines.desc(), Category.id)
            )
        ).all()
        return [
            CategoryStat(id=cid, name=name, orders=count, revenue=rev)
            for cid, name, count, rev in rows
        ]


analytics_service = AnalyticsService()
