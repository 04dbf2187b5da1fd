"""
Storefront Backend — Admin Analytics Routes
=============================================

What:  Read-only dashboard aggregates under /api/admin/analytics.

Live aggregates:  /summary, /top-products, /category-performance, /users
Counter tables:   /daily, /product-stats, /category-stats
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.schemas.analytics import (
    AnalyticsData,
    CategoryPerformance,
    CategoryStat,
    ProductSales,
    RevenueSummary,
    UserWithStats,
)
from storefront.services.analytics_service import analytics_service

router = APIRouter(prefix="/api/admin/analytics", tags=["Analytics"])


@router.get("/summary", response_model=RevenueSummary, summary="Revenue and customer headline numbers")
async def revenue_summary(db: AsyncSession = Depends(get_db_session)):
    return await analytics_service.get_revenue_summary(db)


@router.get("/top-products", response_model=List[ProductSales], summary="Best sellers by units sold")
async def top_products(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
):
    return await analytics_service.get_top_products(db, limit=limit)


@router.get(
    "/category-performance",
    response_model=List[CategoryPerformance],
    summary="Orders and revenue per category",
)
async def category_performance(db: AsyncSession = Depends(get_db_session)):
    return await analytics_service.get_category_performance(db)


@router.get("/users", response_model=List[UserWithStats], summary="Users with order statistics")
async def users_with_stats(db: AsyncSession = Depends(get_db_session)):
    return await analytics_service.list_users_with_stats(db)


@router.get("/daily", response_model=AnalyticsData, summary="Today, month and all-time counters")
async def daily_counters(db: AsyncSession = Depends(get_db_session)):
    return await analytics_service.get_analytics_data(db)


@router.get("/product-stats", response_model=List[ProductSales], summary="Per-product sales counters")
async def product_stats(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
):
    return await analytics_service.get_product_stats(db, limit=limit)


@router.get("/category-stats", response_model=List[CategoryStat], summary="Order lines and revenue per category")
async def category_stats(db: AsyncSession = Depends(get_db_session)):
    return await analytics_service.get_category_stats(db)
