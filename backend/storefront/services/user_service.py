"""
Storefront Backend — User Service
===================================

What:  Registration, login, admin user management and profile edits.
Who:   User routes; CartService / OrderService for user existence checks.

Validation rules (shared by create and update):
    - username: stripped, at least 3 characters, unique
    - password: at least 6 characters, stored as a PBKDF2 hash
    - role: 'admin' or 'user'
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import ConflictError, NotFoundError, ValidationError
from storefront.models import User
from storefront.models.user import ROLE_USER, VALID_ROLES
from storefront.services._errors import db_errors
from storefront.services.security import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


def _validate_username(username: Optional[str]) -> str:
    cleaned = (username or "").strip()
    if len(cleaned) < MIN_USERNAME_LENGTH:
        raise ValidationError(
            message=f"Username must be at least {MIN_USERNAME_LENGTH} characters",
            field="username",
        )
    return cleaned


def _validate_password(password: Optional[str]) -> str:
    if password is None or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )
    return password


def _validate_role(role: Optional[str]) -> str:
    if role not in VALID_ROLES:
        raise ValidationError(
            message=f"Role must be one of: {', '.join(VALID_ROLES)}",
            field="role",
            context={"role": role},
        )
    return role


class UserService:
    """User accounts over an AsyncSession (flushes, never commits)."""

    async def _ensure_username_free(
        self,
        db: AsyncSession,
        username: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        query = select(User.id).where(User.username == username)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if (await db.execute(query)).scalar_one_or_none() is not None:
            raise ConflictError(
                message=f"Username '{username}' is already taken",
                field="username",
            )

    async def _flush_unique(self, db: AsyncSession, username: str) -> None:
        # The UNIQUE constraint still catches a concurrent insert
        try:
            await db.flush()
        except IntegrityError as e:
            raise ConflictError(
                message=f"Username '{username}' is already taken",
                field="username",
            ) from e

    @db_errors("Could not create the user. Please try again.")
    async def add_user(
        self,
        db: AsyncSession,
        username: str,
        password: str,
        role: str = ROLE_USER,
    ) -> User:
        """
        Create an account.

        Raises:
            ValidationError: Username/password too short or unknown role.
            ConflictError: Username already taken.
        """
        username = _validate_username(username)
        password = _validate_password(password)
        role = _validate_role(role)

        await self._ensure_username_free(db, username)

        # Only the salted hash is stored; the plaintext never leaves this method
        user = User(username=username, password_hash=hash_password(password), role=role)
        db.add(user)
        await self._flush_unique(db, username)

        logger.info("User created: id=%s username=%s role=%s", user.id, username, role)
        return user

    async def register(self, db: AsyncSession, username: str, password: str) -> User:
        """Self-service sign-up; always creates a regular customer."""
        return await self.add_user(db, username, password, role=ROLE_USER)

    @db_errors("Could not update the user. Please try again.")
    async def update_user(
        self,
        db: AsyncSession,
        user_id: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[str] = None,
    ) -> User:
        user = await self.get_user(db, user_id)

        if username is not None:
            username = _validate_username(username)
            # Renaming to the current name is a no-op, not a conflict
            if username != user.username:
                await self._ensure_username_free(db, username, exclude_id=user_id)
                user.username = username
        if password is not None:
            user.password_hash = hash_password(_validate_password(password))
        if role is not None:
            user.role = _validate_role(role)

        await self._flush_unique(db, user.username)
        logger.info("User %s updated", user_id)
        return user

    @db_errors("Could not delete the user. Please try again.")
    async def delete_user(self, db: AsyncSession, user_id: int) -> None:
        """Delete an account; cart lines and orders (with their lines) cascade."""
        await self.get_user(db, user_id)
        # Core delete: the database applies ON DELETE CASCADE to carts and orders
        await db.execute(delete(User).where(User.id == user_id))
        await db.flush()
        logger.info("User %s deleted", user_id)

    @db_errors("Could not load users. Please try again.")
    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    @db_errors("Could not load the user. Please try again.")
    async def get_user(self, db: AsyncSession, user_id: int) -> User:
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)
        return user

    @db_errors("Could not check the user. Please try again.")
    async def exists(self, db: AsyncSession, user_id: int) -> bool:
        result = await db.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    @db_errors("Could not load the user. Please try again.")
    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username.strip()))
        return result.scalar_one_or_none()

    async def authenticate(self, db: AsyncSession, username: str, password: str) -> Optional[User]:
        """
        Check a username/password pair.

        Returns:
            The user when the password verifies, otherwise None. Unknown
            usernames and wrong passwords are indistinguishable to callers.
        """
        # One failure path for unknown user and bad password
        user = await self.get_by_username(db, username or "")
        if user is None or not verify_password(password or "", user.password_hash):
            logger.info("Failed login for username=%s", username)
            return None
        logger.info("User %s logged in", user.id)
        return user


user_service = UserService()
