"""
Storefront Backend — Cart Routes
==================================

What:  A user's cart (view, add, clear) and single-line edits.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.schemas.cart import CartAddRequest, CartQuantityUpdate, CartResponse
from storefront.schemas.common import ErrorResponse, MessageResponse
from storefront.services.cart_service import cart_service

router = APIRouter(prefix="/api", tags=["Cart"])

_NOT_FOUND = {404: {"description": "User, product or cart line not found", "model": ErrorResponse}}


@router.get(
    "/users/{user_id}/cart",
    response_model=CartResponse,
    responses=_NOT_FOUND,
    summary="View a user's cart",
)
async def get_cart(user_id: int, db: AsyncSession = Depends(get_db_session)):
    return await cart_service.get_cart(db, user_id)


@router.post(
    "/users/{user_id}/cart",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_NOT_FOUND,
    summary="Add a product to the cart",
)
async def add_to_cart(
    user_id: int,
    body: CartAddRequest,
    db: AsyncSession = Depends(get_db_session),
):
    """Adds the product, merging with an existing line, and returns the updated cart."""
    await cart_service.add_to_cart(db, user_id, body.product_id, body.quantity)
    return await cart_service.get_cart(db, user_id)


@router.delete(
    "/users/{user_id}/cart",
    response_model=MessageResponse,
    summary="Empty a user's cart",
)
async def clear_cart(user_id: int, db: AsyncSession = Depends(get_db_session)):
    removed = await cart_service.clear_cart(db, user_id)
    return MessageResponse(message="Cart cleared", affected=removed)


@router.put(
    "/cart/{item_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    summary="Set a cart line's quantity (0 removes it)",
)
async def update_cart_item(
    item_id: int,
    body: CartQuantityUpdate,
    db: AsyncSession = Depends(get_db_session),
):
    item = await cart_service.update_cart_item(db, item_id, body.quantity)
    if item is None:
        return MessageResponse(message=f"Cart item {item_id} removed", affected=1)
    return MessageResponse(message=f"Cart item {item_id} set to {body.quantity}", affected=1)


@router.delete(
    "/cart/{item_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    summary="Remove a cart line",
)
async def remove_cart_item(item_id: int, db: AsyncSession = Depends(get_db_session)):
    await cart_service.remove_cart_item(db, item_id)
    return MessageResponse(message=f"Cart item {item_id} removed", affected=1)
