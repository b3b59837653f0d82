"""Core Layer — failure taxonomy, envelopes, contracts and service resolution.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - No IO; resolution and failure translation are deterministic
"""
