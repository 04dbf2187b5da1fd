"""
Storefront Backend — Services Layer
=====================================

What:  The data-access layer: CRUD and aggregate operations over the store.
How:   Every service method takes an AsyncSession as its first argument and
       only flushes; committing is the caller's job (get_db_session commits
       once per request, so a multi-step write such as order creation is a
       single transaction).

Service Inventory:
    - CategoryService:  category CRUD
    - ProductService:   product CRUD, per-category listing, keyword search
    - UserService:      accounts, roles, authentication
    - CartService:      per-user cart lines
    - OrderService:     order creation/checkout, status, listings
    - AnalyticsService: revenue summary, rankings, counter tables
"""
