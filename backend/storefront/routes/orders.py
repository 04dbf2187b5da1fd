"""
Storefront Backend — Order Routes
===================================

What:  Placing orders, order history, order lines and the admin order list.

Two ways to place an order:
    POST /api/users/{id}/orders           explicit lines (product, qty, price)
    POST /api/users/{id}/orders/checkout  lines taken from the stored cart
Both clear the user's cart and update the sales counters in the same
transaction.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.schemas.common import ErrorResponse, MessageResponse
from storefront.schemas.order import (
    OrderCreateRequest,
    OrderItemResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderWithUserResponse,
)
from storefront.services.order_service import order_service

router = APIRouter(prefix="/api", tags=["Orders"])

_NOT_FOUND = {404: {"description": "User or order not found", "model": ErrorResponse}}
_INVALID = {400: {"description": "Invalid order", "model": ErrorResponse}}


@router.get(
    "/users/{user_id}/orders",
    response_model=List[OrderResponse],
    summary="A user's order history, newest first",
)
async def list_user_orders(user_id: int, db: AsyncSession = Depends(get_db_session)):
    return await order_service.list_user_orders(db, user_id)


@router.post(
    "/users/{user_id}/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND, **_INVALID},
    summary="Place an order from explicit lines",
)
async def create_order(
    user_id: int,
    body: OrderCreateRequest,
    db: AsyncSession = Depends(get_db_session),
):
    return await order_service.create_order(
        db,
        user_id,
        body.items,
        total_price=body.total_price,
        item_count=body.item_count,
    )


@router.post(
    "/users/{user_id}/orders/checkout",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND, **_INVALID},
    summary="Place an order from the user's cart",
)
async def checkout(user_id: int, db: AsyncSession = Depends(get_db_session)):
    return await order_service.checkout(db, user_id)


@router.delete(
    "/users/{user_id}/orders",
    response_model=MessageResponse,
    summary="Delete a user's order history",
)
async def clear_user_orders(user_id: int, db: AsyncSession = Depends(get_db_session)):
    removed = await order_service.clear_user_orders(db, user_id)
    return MessageResponse(message="Order history cleared", affected=removed)


@router.get(
    "/orders",
    response_model=List[OrderWithUserResponse],
    summary="All orders with usernames (admin)",
)
async def list_orders(
    user_id: Optional[int] = Query(default=None, description="Only this user's orders"),
    status_filter: Optional[str] = Query(
        default=None,
        alias="status",
        description="pending, completed or cancelled",
    ),
    db: AsyncSession = Depends(get_db_session),
):
    return await order_service.list_orders_with_users(db, user_id=user_id, status=status_filter)


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses=_NOT_FOUND,
    summary="Get an order",
)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db_session)):
    return await order_service.get_order(db, order_id)


@router.get(
    "/orders/{order_id}/items",
    response_model=List[OrderItemResponse],
    responses=_NOT_FOUND,
    summary="Lines of an order",
)
async def get_order_items(order_id: int, db: AsyncSession = Depends(get_db_session)):
    return await order_service.get_order_items(db, order_id)


@router.patch(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={**_NOT_FOUND, **_INVALID},
    summary="Change an order's status",
)
async def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db_session),
):
    return await order_service.update_order_status(db, order_id, body.status)
