"""
Storefront Backend — Cart Schemas
===================================

What:  Request bodies for cart edits and the joined cart view.

CartItemResponse is the cart line joined with its product (name, current
price, image); CartResponse wraps the lines with totals so clients do not
recompute them.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from storefront.schemas.common import as_utc


class CartAddRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1, le=999)


class CartQuantityUpdate(BaseModel):
    """Setting quantity to 0 (or less) removes the line."""
    quantity: int = Field(le=999)


class CartItemResponse(BaseModel):
    id: int
    user_id: int
    product_id: int
    quantity: int
    added_at: datetime
    name: str
    price: float
    img: Optional[str] = None
    line_total: float = Field(description="price × quantity")

    @field_validator("added_at")
    @classmethod
    def normalize_added_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class CartResponse(BaseModel):
    items: List[CartItemResponse]
    total_price: float = Field(description="Sum of line totals")
    item_count: int = Field(description="Sum of quantities")
