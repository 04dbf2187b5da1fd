"""
Storefront Backend — Order Schemas
====================================

What:  Pydantic models for order creation, order lists, order lines and
       status changes.

Order creation accepts explicit lines (product, quantity, unit price) for
callers that priced the cart themselves; POST .../orders/checkout builds
the lines from the stored cart instead.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from storefront.schemas.common import as_utc


class OrderItemInput(BaseModel):
    product_id: int
    quantity: int = Field(ge=1, le=999)
    price: float = Field(ge=0, description="Unit price charged")


class OrderCreateRequest(BaseModel):
    """
    What:  Body of POST /api/users/{id}/orders.
    Defaults:
        total_price → Σ price × quantity over items
        item_count  → Σ quantity over items
    """
    items: List[OrderItemInput] = Field(min_length=1)
    total_price: Optional[float] = Field(default=None, ge=0)
    item_count: Optional[int] = Field(default=None, ge=1)


class OrderStatusUpdate(BaseModel):
    status: str = Field(description="pending, completed or cancelled")


class OrderResponse(BaseModel):
    id: int
    order_code: str = Field(description="External order identifier (ORD-...)")
    user_id: int
    total_price: float
    item_count: int
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class OrderWithUserResponse(OrderResponse):
    """Admin order list row; username is null when the user row is gone."""
    username: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: int
    order_id: int
    product_id: Optional[int] = None
    quantity: int
    price: float
    name: Optional[str] = None
    img: Optional[str] = None
