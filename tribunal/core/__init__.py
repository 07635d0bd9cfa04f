"""Core Layer — pure moderation logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - All functions are pure; "now" is injectable wherever time matters

Design Decisions:
    - Functional core separated from imperative shell (ADR: ExMA impureim sandwich)
    - Static tables are module-level immutable mappings built once at import
"""
