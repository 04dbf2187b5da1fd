"""
Storefront Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Responses travel back through the same chain in reverse, so the
    X-Request-ID header is set on every response and the access log line
    carries the final status code and duration.
"""
