"""
Storefront Backend — Analytics Schemas
========================================

What:  Response models for the admin dashboard aggregates.

Two families:
    Live aggregates (computed from orders / order_items / users):
        RevenueSummary, ProductSales, CategoryPerformance, UserWithStats
    Counter-table views (read from analytics / product_stats):
        AnalyticsData, ProductSales (stats), CategoryStat
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from storefront.schemas.common import as_utc

from storefront.schemas.user import UserResponse


class RevenueSummary(BaseModel):
    """
    Dashboard headline numbers. Periods are UTC calendar ranges.

    Derived ratios are 0 when their denominator is 0:
        avg_order_value         = total_revenue / total_orders
        average_items_per_order = total_items_sold / total_orders
        conversion_rate         = total_customers / total_users × 100
    """
    today_revenue: float = 0
    today_orders: int = 0
    month_revenue: float = 0
    month_orders: int = 0
    year_revenue: float = 0
    total_orders: int = 0
    total_customers: int = Field(default=0, description="Distinct users with ≥1 order")
    total_users: int = 0
    total_items_sold: int = 0
    avg_order_value: float = 0
    conversion_rate: float = Field(default=0, description="Percent of users who ordered")
    average_items_per_order: float = 0
    new_customers_this_month: int = Field(
        default=0, description="Users whose first order falls in the current month"
    )
    total_revenue: float = 0


class ProductSales(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    sold: int = 0
    revenue: float = 0


class CategoryPerformance(BaseModel):
    name: str
    orders: int = Field(default=0, description="Distinct orders containing the category")
    revenue: float = 0


class CategoryStat(BaseModel):
    id: int
    name: str
    orders: int = Field(default=0, description="Order lines in the category")
    revenue: float = 0


class UserWithStats(UserResponse):
    order_count: int = 0
    total_revenue: float = 0
    last_order_at: Optional[datetime] = None

    @field_validator("last_order_at")
    @classmethod
    def normalize_last_order_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class PeriodTotals(BaseModel):
    revenue: float = 0
    orders: int = 0


class AnalyticsData(BaseModel):
    today: PeriodTotals
    month: PeriodTotals
    all_time: PeriodTotals
    total_customers: int = 0
