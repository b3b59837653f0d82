"""crudkit — generic CRUD endpoints delegating to pluggable, token-resolved services.

Invariants:
    - Package root has no import side effects beyond the version string

Design Decisions:
    - No star exports: import from crudkit.core / crudkit.services / crudkit.api explicitly
"""

__version__ = "1.0.0"
