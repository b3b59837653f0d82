"""Services Layer — the CRUD dispatcher and the reference in-memory service.

Invariants:
    - Dispatcher depends on the CrudService protocol only, never on a concrete service
"""
