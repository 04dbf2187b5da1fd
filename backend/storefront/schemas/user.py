"""
Storefront Backend — User Schemas
===================================

What:  Pydantic models for registration, login, admin user management and
       profile edits.
Security:
    UserResponse never includes the password hash; requests carry the
    plaintext password only until UserService hashes it.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from storefront.schemas.common import as_utc


class RegisterRequest(BaseModel):
    username: str = Field(max_length=100)
    password: str = Field(max_length=128)


class LoginRequest(BaseModel):
    username: str = Field(max_length=100)
    password: str = Field(max_length=128)


class UserCreate(BaseModel):
    """Admin-side user creation; role defaults to a regular customer."""
    username: str = Field(max_length=100)
    password: str = Field(max_length=128)
    role: str = Field(default="user", description="'admin' or 'user'")


class UserUpdate(BaseModel):
    """
    Partial update used by both the profile screen (username / password)
    and the admin panel (role). Omitted fields are left unchanged.
    """
    username: Optional[str] = Field(default=None, max_length=100)
    password: Optional[str] = Field(default=None, max_length=128)
    role: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    username: str
    role: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)
