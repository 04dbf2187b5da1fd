"""
Storefront Backend — Cart Service Tests
=========================================

What we test:
    ✅ Adding the same product twice merges into one line
    ✅ Cart view joins product details, newest line first, with totals
    ✅ Quantity ≤ 0 removes the line
    ✅ Unknown user / product / line errors
"""

import pytest

from storefront.exceptions import NotFoundError, ValidationError
from storefront.services.cart_service import CartService
from storefront.services.user_service import user_service


@pytest.fixture
def service():
    return CartService()


async def _customer(db_session, username="kamille"):
    return await user_service.register(db_session, username, "zeta123")


class TestAddToCart:

    @pytest.mark.asyncio
    async def test_add_new_line(self, db_session, service):
        user = await _customer(db_session)
        item = await service.add_to_cart(db_session, user.id, 1, 2)

        assert item.id is not None
        assert item.user_id == user.id
        assert item.product_id == 1
        assert item.quantity == 2

    @pytest.mark.asyncio
    async def test_same_product_merges(self, db_session, service):
        user = await _customer(db_session)
        first = await service.add_to_cart(db_session, user.id, 1, 2)
        second = await service.add_to_cart(db_session, user.id, 1, 3)

        assert second.id == first.id
        assert second.quantity == 5
        cart = await service.get_cart(db_session, user.id)
        assert len(cart.items) == 1

    @pytest.mark.asyncio
    async def test_default_quantity_is_one(self, db_session, service):
        user = await _customer(db_session)
        item = await service.add_to_cart(db_session, user.id, 4)
        assert item.quantity == 1

    @pytest.mark.asyncio
    async def test_carts_are_per_user(self, db_session, service):
        one = await _customer(db_session, "kamille")
        two = await _customer(db_session, "fa_yuiry")
        await service.add_to_cart(db_session, one.id, 1, 1)
        await service.add_to_cart(db_session, two.id, 1, 1)

        assert len((await service.get_cart(db_session, one.id)).items) == 1
        assert len((await service.get_cart(db_session, two.id)).items) == 1

    @pytest.mark.asyncio
    async def test_zero_quantity_rejected(self, db_session, service):
        user = await _customer(db_session)
        with pytest.raises(ValidationError):
            await service.add_to_cart(db_session, user.id, 1, 0)

    @pytest.mark.asyncio
    async def test_unknown_product(self, db_session, service):
        user = await _customer(db_session)
        with pytest.raises(NotFoundError):
            await service.add_to_cart(db_session, user.id, 404, 1)

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session, service):
        with pytest.raises(NotFoundError):
            await service.add_to_cart(db_session, 404, 1, 1)


class TestCartView:

    @pytest.mark.asyncio
    async def test_joined_lines_and_totals(self, db_session, service):
        user = await _customer(db_session)
        await service.add_to_cart(db_session, user.id, 1, 2)
        await service.add_to_cart(db_session, user.id, 3, 1)

        cart = await service.get_cart(db_session, user.id)

        assert [item.product_id for item in cart.items] == [3, 1]
        newest = cart.items[0]
        assert newest.name == "Astray Hirm"
        assert newest.price == 490000
        assert newest.img == "Astray_hirm.webp"
        assert newest.line_total == 490000
        assert cart.total_price == 2 * 250000 + 490000
        assert cart.item_count == 3

    @pytest.mark.asyncio
    async def test_empty_cart(self, db_session, service):
        user = await _customer(db_session)
        cart = await service.get_cart(db_session, user.id)

        assert cart.items == []
        assert cart.total_price == 0
        assert cart.item_count == 0

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session, service):
        with pytest.raises(NotFoundError):
            await service.get_cart(db_session, 404)


class TestCartEdits:

    @pytest.mark.asyncio
    async def test_set_quantity(self, db_session, service):
        user = await _customer(db_session)
        item = await service.add_to_cart(db_session, user.id, 2, 1)

        updated = await service.update_cart_item(db_session, item.id, 4)

        assert updated.quantity == 4
        assert (await service.get_cart(db_session, user.id)).item_count == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -3])
    async def test_non_positive_quantity_removes_line(self, db_session, service, quantity):
        user = await _customer(db_session)
        item = await service.add_to_cart(db_session, user.id, 2, 1)

        assert await service.update_cart_item(db_session, item.id, quantity) is None
        assert (await service.get_cart(db_session, user.id)).items == []

    @pytest.mark.asyncio
    async def test_update_missing_line(self, db_session, service):
        with pytest.raises(NotFoundError):
            await service.update_cart_item(db_session, 404, 2)

    @pytest.mark.asyncio
    async def test_remove_line(self, db_session, service):
        user = await _customer(db_session)
        keep = await service.add_to_cart(db_session, user.id, 1, 1)
        drop = await service.add_to_cart(db_session, user.id, 2, 1)

        await service.remove_cart_item(db_session, drop.id)

        cart = await service.get_cart(db_session, user.id)
        assert [item.id for item in cart.items] == [keep.id]

    @pytest.mark.asyncio
    async def test_remove_missing_line(self, db_session, service):
        with pytest.raises(NotFoundError):
            await service.remove_cart_item(db_session, 404)

    @pytest.mark.asyncio
    async def test_clear_cart(self, db_session, service):
        user = await _customer(db_session)
        await service.add_to_cart(db_session, user.id, 1, 1)
        await service.add_to_cart(db_session, user.id, 2, 1)

        assert await service.clear_cart(db_session, user.id) == 2
        assert (await service.get_cart(db_session, user.id)).items == []
        assert await service.clear_cart(db_session, user.id) == 0
