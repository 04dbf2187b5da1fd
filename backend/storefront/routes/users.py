"""
Storefront Backend — User Routes
==================================

What:  Registration, login and admin user management.
Who:   Login/register screens, profile screen, admin panel.

Login returns the user record on success and 401 otherwise; sessions are
kept client-side, so no token is issued.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.exceptions import AuthenticationError
from storefront.schemas.common import ErrorResponse, MessageResponse
from storefront.schemas.user import (
    LoginRequest,
    RegisterRequest,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from storefront.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])

_NOT_FOUND = {404: {"description": "User not found", "model": ErrorResponse}}
_WRITE_ERRORS = {
    400: {"description": "Invalid username, password or role", "model": ErrorResponse},
    409: {"description": "Username already taken", "model": ErrorResponse},
}


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WRITE_ERRORS,
    summary="Register a customer account",
)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db_session)):
    return await user_service.register(db, body.username, body.password)


@router.post(
    "/login",
    response_model=UserResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Check credentials",
)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db_session)):
    user = await user_service.authenticate(db, body.username, body.password)
    if user is None:
        raise AuthenticationError(message="Invalid username or password")
    return user


@router.get("", response_model=List[UserResponse], summary="List users")
async def list_users(db: AsyncSession = Depends(get_db_session)):
    return await user_service.list_users(db)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WRITE_ERRORS,
    summary="Create a user with a role",
)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db_session)):
    return await user_service.add_user(db, body.username, body.password, role=body.role)


@router.get("/{user_id}", response_model=UserResponse, responses=_NOT_FOUND, summary="Get a user")
async def get_user(user_id: int, db: AsyncSession = Depends(get_db_session)):
    return await user_service.get_user(db, user_id)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses={**_NOT_FOUND, **_WRITE_ERRORS},
    summary="Update username, password or role",
)
async def update_user(
    user_id: int,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db_session),
):
    return await user_service.update_user(
        db,
        user_id,
        username=body.username,
        password=body.password,
        role=body.role,
    )


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    summary="Delete a user with their cart and orders",
)
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db_session)):
    await user_service.delete_user(db, user_id)
    return MessageResponse(message=f"User {user_id} deleted", affected=1)
