"""Route Modules — fixed routes that are not generated from a CrudResource.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
"""
