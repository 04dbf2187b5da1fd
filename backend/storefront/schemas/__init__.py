"""Pydantic request/response models (the HTTP contract)."""
