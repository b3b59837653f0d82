"""API Layer — FastAPI binding for CRUD resources, probes and error handlers.

Invariants:
    - Routers registered explicitly by main.create_app (no auto-discovery)
    - All endpoints return structured JSON responses carrying "message"

Design Decisions:
    - Thin routes delegate to services/crud_dispatcher.py
"""
