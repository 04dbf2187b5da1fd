"""
Storefront Backend — Catalog Schemas
======================================

What:  Pydantic request/response models for categories and products.
How:   Request models enforce types and numeric ranges (FastAPI answers 422
       on violation); business rules such as "category must exist" live in
       the services and surface as 400 ValidationError.
"""

from typing import Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Categories
# ══════════════════════════════════════════════════════════════════════════


class CategoryCreate(BaseModel):
    name: str = Field(max_length=100, description="Category display name")


class CategoryUpdate(BaseModel):
    name: str = Field(max_length=100, description="New category name")


class CategoryResponse(BaseModel):
    id: int = Field(description="Category identifier")
    name: str = Field(description="Category display name")

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Products
# ══════════════════════════════════════════════════════════════════════════


class ProductCreate(BaseModel):
    """
    What:  Body of POST /api/products.
    Note:  `img` is an opaque image key (file name); the API never serves it.
    """
    name: str = Field(max_length=200)
    price: float = Field(ge=0, description="Unit price")
    img: Optional[str] = Field(default=None, max_length=255)
    category_id: int = Field(description="Owning category; must exist")


class ProductUpdate(BaseModel):
    """Partial update: omitted fields keep their current value."""
    name: Optional[str] = Field(default=None, max_length=200)
    price: Optional[float] = Field(default=None, ge=0)
    img: Optional[str] = Field(default=None, max_length=255)
    category_id: Optional[int] = None


class ProductResponse(BaseModel):
    id: int
    name: str
    price: float
    img: Optional[str] = None
    category_id: Optional[int] = None

    model_config = {"from_attributes": True}
