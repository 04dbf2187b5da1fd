"""
Storefront Backend — Category Routes
======================================

What:  Category CRUD and the per-category product list.
Who:   Catalog sections (read) and the admin panel (write).
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductResponse,
)
from storefront.schemas.common import ErrorResponse, MessageResponse
from storefront.services.category_service import category_service
from storefront.services.product_service import product_service

router = APIRouter(prefix="/api/categories", tags=["Categories"])

_NOT_FOUND = {404: {"description": "Category not found", "model": ErrorResponse}}
_INVALID = {400: {"description": "Invalid category", "model": ErrorResponse}}


@router.get("", response_model=List[CategoryResponse], summary="List categories")
async def list_categories(db: AsyncSession = Depends(get_db_session)):
    return await category_service.list_categories(db)


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_INVALID,
    summary="Create a category",
)
async def create_category(body: CategoryCreate, db: AsyncSession = Depends(get_db_session)):
    return await category_service.add_category(db, body.name)


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses=_NOT_FOUND,
    summary="Get a category",
)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db_session)):
    return await category_service.get_category(db, category_id)


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={**_NOT_FOUND, **_INVALID},
    summary="Rename a category",
)
async def update_category(
    category_id: int,
    body: CategoryUpdate,
    db: AsyncSession = Depends(get_db_session),
):
    return await category_service.update_category(db, category_id, body.name)


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    summary="Delete a category and its products",
)
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db_session)):
    removed = await category_service.delete_category(db, category_id)
    return MessageResponse(message=f"Category {category_id} deleted", affected=removed)


@router.get(
    "/{category_id}/products",
    response_model=List[ProductResponse],
    summary="List the products of a category",
)
async def list_category_products(category_id: int, db: AsyncSession = Depends(get_db_session)):
    return await product_service.list_products_by_category(db, category_id)
