"""API Layer — FastAPI routes, error handlers and HTTP caching.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return camelCase JSON responses

Design Decisions:
    - Thin routes delegate to services (core stays free of HTTP concerns)
"""
