"""
Storefront Backend — API Routes Package
=========================================

What:  HTTP route handlers; thin wrappers that pull a session from
       get_db_session() and delegate to the services.

Route Inventory:
    - health.py:     GET  /health
    - categories.py: /api/categories[/{id}[/products]]
    - products.py:   /api/products[/{id}]           (?q= keyword search)
    - users.py:      /api/users/register, /api/users/login, /api/users[/{id}]
    - cart.py:       /api/users/{id}/cart, /api/cart/{item_id}
    - orders.py:     /api/users/{id}/orders[/checkout], /api/orders[/{id}[/items|/status]]
    - analytics.py:  /api/admin/analytics/*

Routes handle HTTP concerns only (parsing, status codes); domain errors
raised by services are rendered by the handlers registered in main.py.
"""
