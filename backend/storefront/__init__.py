"""
Storefront Backend — Application Package Initializer
=====================================================

What: Marks the `storefront` directory as a Python package.
Who:  Imported by Alembic, pytest, uvicorn (`uvicorn storefront.main:app`)
      and any script that wants the data-access layer directly.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │    Services (Data-Access Layer)     │  ← CRUD, aggregates, order writes
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │     Database (Embedded SQLite)      │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Services take an AsyncSession and never commit themselves; the caller
    (the request-scoped session dependency, or a script) owns the transaction.
"""

__version__ = "1.0.0"
