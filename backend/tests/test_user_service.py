"""
Storefront Backend — User Service & Password Hashing Tests
============================================================

What we test:
    ✅ Seeded admin can log in
    ✅ Username / password / role validation
    ✅ Duplicate usernames → ConflictError (create and rename)
    ✅ Passwords are stored hashed, never in plaintext
    ✅ Delete cascades cart lines and orders
    ✅ hash_password / verify_password edge cases
"""

import pytest

from storefront.exceptions import ConflictError, NotFoundError, ValidationError
from storefront.services.cart_service import cart_service
from storefront.services.order_service import OrderLine, order_service
from storefront.services.security import hash_password, verify_password
from storefront.services.user_service import UserService


class TestUserCreation:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_seeded_admin(self, db_session):
        admin = await self.service.get_by_username(db_session, "admin")
        assert admin is not None
        assert admin.role == "admin"
        assert admin.is_admin

    @pytest.mark.asyncio
    async def test_register_creates_customer(self, db_session):
        user = await self.service.register(db_session, "  amuro  ", "gundam1")

        assert user.id is not None
        assert user.username == "amuro"
        assert user.role == "user"
        assert user.created_at is not None

    @pytest.mark.asyncio
    async def test_password_is_hashed(self, db_session):
        user = await self.service.register(db_session, "amuro", "gundam1")

        assert user.password_hash != "gundam1"
        assert user.password_hash.startswith("pbkdf2_sha256$")
        assert verify_password("gundam1", user.password_hash)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username", ["ab", "  ab  ", "", None])
    async def test_short_username_rejected(self, db_session, username):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.register(db_session, username, "gundam1")
        assert exc_info.value.field == "username"

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.register(db_session, "amuro", "12345")
        assert exc_info.value.field == "password"

    @pytest.mark.asyncio
    async def test_invalid_role_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.add_user(db_session, "char", "zeon123", role="superuser")
        assert exc_info.value.field == "role"

    @pytest.mark.asyncio
    async def test_add_admin(self, db_session):
        user = await self.service.add_user(db_session, "bright", "noa1234", role="admin")
        assert user.role == "admin"

    @pytest.mark.asyncio
    async def test_duplicate_username_conflicts(self, db_session):
        await self.service.register(db_session, "amuro", "gundam1")
        with pytest.raises(ConflictError):
            await self.service.register(db_session, "amuro", "another1")

    @pytest.mark.asyncio
    async def test_duplicate_with_whitespace_conflicts(self, db_session):
        with pytest.raises(ConflictError):
            await self.service.register(db_session, " admin ", "another1")


class TestAuthentication:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_admin_login(self, db_session):
        user = await self.service.authenticate(db_session, "admin", "123456")
        assert user is not None
        assert user.username == "admin"

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session):
        assert await self.service.authenticate(db_session, "admin", "654321") is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        assert await self.service.authenticate(db_session, "nobody", "123456") is None


class TestUserUpdateDelete:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_update_password(self, db_session):
        user = await self.service.register(db_session, "amuro", "gundam1")

        await self.service.update_user(db_session, user.id, password="newtype7")

        assert await self.service.authenticate(db_session, "amuro", "gundam1") is None
        assert await self.service.authenticate(db_session, "amuro", "newtype7") is not None

    @pytest.mark.asyncio
    async def test_rename_to_taken_username(self, db_session):
        user = await self.service.register(db_session, "amuro", "gundam1")
        with pytest.raises(ConflictError):
            await self.service.update_user(db_session, user.id, username="admin")

    @pytest.mark.asyncio
    async def test_rename_to_own_username(self, db_session):
        user = await self.service.register(db_session, "amuro", "gundam1")
        updated = await self.service.update_user(db_session, user.id, username="amuro")
        assert updated.username == "amuro"

    @pytest.mark.asyncio
    async def test_change_role(self, db_session):
        user = await self.service.register(db_session, "amuro", "gundam1")
        updated = await self.service.update_user(db_session, user.id, role="admin")
        assert updated.role == "admin"

    @pytest.mark.asyncio
    async def test_update_invalid_role(self, db_session):
        user = await self.service.register(db_session, "amuro", "gundam1")
        with pytest.raises(ValidationError):
            await self.service.update_user(db_session, user.id, role="owner")

    @pytest.mark.asyncio
    async def test_update_missing_user(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.update_user(db_session, 999, username="ghost")

    @pytest.mark.asyncio
    async def test_delete_cascades_cart_and_orders(self, db_session):
        user = await self.service.register(db_session, "amuro", "gundam1")
        order = await order_service.create_order(
            db_session, user.id, [OrderLine(product_id=1, quantity=1, price=250000)]
        )
        await cart_service.add_to_cart(db_session, user.id, 5, 1)

        await self.service.delete_user(db_session, user.id)

        with pytest.raises(NotFoundError):
            await self.service.get_user(db_session, user.id)
        with pytest.raises(NotFoundError):
            await order_service.get_order(db_session, order.id)
        assert await order_service.list_user_orders(db_session, user.id) == []

    @pytest.mark.asyncio
    async def test_list_users(self, db_session):
        await self.service.register(db_session, "amuro", "gundam1")
        users = await self.service.list_users(db_session)
        assert [u.username for u in users] == ["admin", "amuro"]


class TestPasswordHashing:

    def test_round_trip(self):
        stored = hash_password("s3cret!", iterations=1000)
        assert verify_password("s3cret!", stored)
        assert not verify_password("s3cret?", stored)

    def test_salted(self):
        assert hash_password("same-password", iterations=1000) != hash_password(
            "same-password", iterations=1000
        )

    def test_iterations_recorded(self):
        stored = hash_password("pw12345", iterations=1234)
        assert stored.split("$")[1] == "1234"

    @pytest.mark.parametrize(
        "stored",
        ["", "plaintext", "md5$1$aa$bb", "pbkdf2_sha256$notanumber$aa$bb", "pbkdf2_sha256$1000$zz$bb"],
    )
    def test_malformed_hash_never_matches(self, stored):
        assert verify_password("anything", stored) is False
