"""
Storefront Backend — Database Initialization Tests
====================================================

What:  Schema creation, seeding and startup retry behaviour.
How:   Seeding runs against the seeded in-memory store from conftest; the
       retry tests wrap that engine so its first connections fail with
       OperationalError, the way a locked SQLite file does.

What we test:
    ✅ Re-seeding a populated store inserts nothing and keeps edits
    ✅ Missing seed rows are restored
    ✅ init_database can run again on an initialized store
    ✅ Transient OperationalError is retried, then re-raised once attempts run out
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import wait_none

from storefront.config import settings
from storefront.database import init_database
from storefront.models import Category, Product, User
from storefront.services.category_service import category_service
from storefront.services.product_service import product_service
from storefront.services.seed import seed_database


class FlakyEngine:
    """Engine stand-in whose first `failures` begin() calls raise OperationalError."""

    def __init__(self, engine, failures: int):
        self._engine = engine
        self.failures = failures
        self.attempts = 0

    @property
    def url(self):
        return self._engine.url

    def begin(self):
        self.attempts += 1
        if self.failures:
            self.failures -= 1
            raise OperationalError("BEGIN", {}, Exception("database is locked"))
        return self._engine.begin()


# No backoff sleeps inside the test run
fast_init_database = init_database.retry_with(wait=wait_none())


class TestSeed:

    @pytest.mark.asyncio
    async def test_reseed_inserts_nothing(self, db_session):
        inserted = await seed_database(db_session)
        assert inserted == {"categories": 0, "products": 0, "users": 0}

    @pytest.mark.asyncio
    async def test_reseed_keeps_edited_rows(self, db_session):
        await product_service.update_product(db_session, 1, price=199000)
        await category_service.update_category(db_session, 2, "Unicorn NT")

        await seed_database(db_session)

        product = await product_service.get_product(db_session, 1)
        category = await category_service.get_category(db_session, 2)
        assert product.price == 199000
        assert category.name == "Unicorn NT"

    @pytest.mark.asyncio
    async def test_missing_rows_restored(self, db_session):
        await product_service.delete_product(db_session, 4)

        inserted = await seed_database(db_session)

        assert inserted == {"categories": 0, "products": 1, "users": 0}
        restored = await product_service.get_product(db_session, 4)
        assert restored.name == "Astray noname"


class TestInitDatabase:

    @pytest.mark.asyncio
    async def test_rerun_on_initialized_store(self, db_engine):
        await init_database(bind=db_engine, seed=True)

        factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as session:
            categories = (await session.execute(select(func.count(Category.id)))).scalar()
            products = (await session.execute(select(func.count(Product.id)))).scalar()
            admins = (
                await session.execute(
                    select(func.count(User.id)).where(User.username == settings.admin_username)
                )
            ).scalar()
        assert (categories, products, admins) == (2, 5, 1)

    @pytest.mark.asyncio
    async def test_transient_error_retried(self, db_engine):
        flaky = FlakyEngine(db_engine, failures=1)

        await fast_init_database(bind=flaky, seed=False)

        assert flaky.attempts == 2

    @pytest.mark.asyncio
    async def test_error_reraised_after_last_attempt(self, db_engine):
        flaky = FlakyEngine(db_engine, failures=settings.retry_max_attempts + 1)

        with pytest.raises(OperationalError):
            await fast_init_database(bind=flaky, seed=False)

        assert flaky.attempts == settings.retry_max_attempts
