"""
Storefront Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, FastAPI dependency, and
       schema/seed initialization for the embedded store.
How:   Creates an async engine for `settings.database_url` (SQLite through
       aiosqlite by default), turns on SQLite foreign-key enforcement for
       every connection, and provides a session dependency that commits on
       success and rolls back on error.
Who:   Route handlers via FastAPI's dependency injection; the app lifespan
       for init/dispose; tests for building isolated in-memory engines.
When:  Engine is created at module import; sessions are created per-request.

Referential Integrity:
    SQLite ignores FOREIGN KEY clauses unless `PRAGMA foreign_keys = ON` is
    issued on each connection. The connect listener below does that, so the
    ON DELETE CASCADE / SET NULL rules in the models are enforced:
        categories → products → cart_items, product_stats
        users → cart_items, orders → order_items
        products ⇢ order_items.product_id (SET NULL, snapshot kept)
"""

import logging
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from storefront.config import settings

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Pool sizing is only meaningful for server databases, not SQLite files."""
    options: Dict[str, Any] = {
        # SQL echo only in DEBUG
        "echo": settings.log_level == "DEBUG",
        "pool_pre_ping": settings.db_pool_pre_ping,
    }
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,          # Persistent connections
            max_overflow=settings.db_max_overflow,     # Extra connections for spikes
            pool_recycle=3600,                         # Recycle hourly
        )
    return options


def enable_sqlite_foreign_keys(target_engine: AsyncEngine) -> None:
    """
    Register a connect listener that enables FK enforcement on SQLite.

    No-op for other dialects, which enforce foreign keys by default.
    """
    if target_engine.dialect.name != "sqlite":
        return

    # Per-connection pragma: SQLite forgets it when a connection closes
    @event.listens_for(target_engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))
enable_sqlite_foreign_keys(engine)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: ORM objects stay readable after the request commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (services flush, never commit)
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session

    Example usage in a route:
        @router.get("/products")
        async def list_products(db: AsyncSession = Depends(get_db_session)):
            return await product_service.list_products(db)
    """
    async with async_session_factory() as session:
        try:
            yield session
            # One commit per request: services only flush
            await session.commit()
        except Exception:
            # Any failure, including non-DB errors after a flush, discards the request's writes
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Schema & Seed ─────────────────────────────────────────────────────────
@retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(settings.retry_max_attempts),
    wait=wait_exponential_jitter(
        initial=settings.retry_min_wait,
        max=settings.retry_max_wait,
        jitter=0.5,
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def init_database(bind: Optional[AsyncEngine] = None, seed: bool = True) -> None:
    """
    Create all tables and (optionally) insert the seed catalog and admin account.

    Safe to run on every startup: `create_all` skips existing tables and the
    seed routine only inserts rows that are missing.

    Args:
        bind: Engine to initialize. Defaults to the application engine.
        seed: Whether to insert the initial categories, products and admin user.

    Raises:
        sqlalchemy.exc.OperationalError: If the database stays unavailable
            after `settings.retry_max_attempts` attempts.
    """
    # Registers every model on Base.metadata before create_all
    import storefront.models  # noqa: F401
    from storefront.services.seed import seed_database

    # ── Step 1: Tables ───────────────────────────────────────────────────
    # create_all skips tables that already exist
    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready (%s)", target.url.render_as_string(hide_password=True))

    # ── Step 2: Seed rows ────────────────────────────────────────────────
    # Own session and commit: this runs outside any request
    if seed:
        factory = async_sessionmaker(target, class_=AsyncSession, expire_on_commit=False)
        async with factory() as session:
            await seed_database(session)
            await session.commit()


async def dispose_engine() -> None:
    """Close all pooled connections (application shutdown)."""
    await engine.dispose()
