"""
Storefront Backend — Initial Data
==================================

What:  Inserts the starter catalog (two categories, five products) and the
       admin account into an empty or partially-populated store.
When:  From init_database() at startup when settings.seed_on_startup is set,
       and from the test fixtures.

Idempotent: rows are looked up by primary key (catalog) or username (admin)
and only inserted when absent. Existing rows, including edited prices or
renamed categories, are left alone.
"""

import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import settings
from storefront.models import Category, Product, User
from storefront.models.user import ROLE_ADMIN
from storefront.services.security import hash_password

logger = logging.getLogger(__name__)

INITIAL_CATEGORIES: List[Dict] = [
    {"id": 1, "name": "Astray"},
    {"id": 2, "name": "Unicorn"},
]

INITIAL_PRODUCTS: List[Dict] = [
    {"id": 1, "name": "Unicorn 2.0", "price": 250000, "img": "Unicorn_gundam_0.2.jpg", "category_id": 2},
    {"id": 2, "name": "Astray Gold Frame", "price": 1100000, "img": "Astray_gold.jpg", "category_id": 1},
    {"id": 3, "name": "Astray Hirm", "price": 490000, "img": "Astray_hirm.webp", "category_id": 1},
    {"id": 4, "name": "Astray noname", "price": 120000, "img": "astray_noname.webp", "category_id": 1},
    {"id": 5, "name": "Unicorn Gundam", "price": 980000, "img": "Unicorn_gundam.jpg", "category_id": 2},
]


async def seed_database(db: AsyncSession) -> Dict[str, int]:
    """
    Insert missing seed rows and flush.

    Returns:
        Count of inserted rows per table, e.g. {"categories": 2, "products": 5, "users": 1}.
    """
    inserted = {"categories": 0, "products": 0, "users": 0}

    existing_categories = set(
        (await db.execute(select(Category.id))).scalars().all()
    )
    for row in INITIAL_CATEGORIES:
        if row["id"] not in existing_categories:
            db.add(Category(**row))
            inserted["categories"] += 1
    # Categories must exist before products reference them
    await db.flush()

    existing_products = set(
        (await db.execute(select(Product.id))).scalars().all()
    )
    for row in INITIAL_PRODUCTS:
        if row["id"] not in existing_products:
            db.add(Product(**row))
            inserted["products"] += 1

    admin = (
        await db.execute(select(User.id).where(User.username == settings.admin_username))
    ).scalar_one_or_none()
    if admin is None:
        db.add(
            User(
                username=settings.admin_username,
                password_hash=hash_password(settings.admin_password),
                role=ROLE_ADMIN,
            )
        )
        inserted["users"] += 1

    await db.flush()

    if any(inserted.values()):
        logger.info(
            "Seeded %d categories, %d products, %d users",
            inserted["categories"],
            inserted["products"],
            inserted["users"],
        )
    return inserted
