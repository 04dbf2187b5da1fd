"""
Storefront Backend — Product Routes
=====================================

What:  Product CRUD and keyword search.
Who:   Home/search screens (GET) and the admin panel (POST/PUT/DELETE).

Search:
    GET /api/products?q=astray matches product OR category names,
    case-insensitively. Without q (or with a blank q) the whole catalog
    is returned.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.schemas.catalog import ProductCreate, ProductResponse, ProductUpdate
from storefront.schemas.common import ErrorResponse, MessageResponse
from storefront.services.product_service import product_service

router = APIRouter(prefix="/api/products", tags=["Products"])

_NOT_FOUND = {404: {"description": "Product not found", "model": ErrorResponse}}
_INVALID = {400: {"description": "Invalid product or unknown category", "model": ErrorResponse}}


@router.get("", response_model=List[ProductResponse], summary="List or search products")
async def list_products(
    q: Optional[str] = Query(default=None, max_length=100, description="Keyword search"),
    db: AsyncSession = Depends(get_db_session),
):
    if q is not None:
        return await product_service.search_products(db, q)
    return await product_service.list_products(db)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_INVALID,
    summary="Create a product",
)
async def create_product(body: ProductCreate, db: AsyncSession = Depends(get_db_session)):
    return await product_service.add_product(
        db,
        name=body.name,
        price=body.price,
        category_id=body.category_id,
        img=body.img,
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses=_NOT_FOUND,
    summary="Get a product",
)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db_session)):
    return await product_service.get_product(db, product_id)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    responses={**_NOT_FOUND, **_INVALID},
    summary="Update a product (partial)",
)
async def update_product(
    product_id: int,
    body: ProductUpdate,
    db: AsyncSession = Depends(get_db_session),
):
    return await product_service.update_product(
        db,
        product_id,
        name=body.name,
        price=body.price,
        img=body.img,
        category_id=body.category_id,
    )


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    summary="Delete a product",
)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db_session)):
    await product_service.delete_product(db, product_id)
    return MessageResponse(message=f"Product {product_id} deleted", affected=1)
