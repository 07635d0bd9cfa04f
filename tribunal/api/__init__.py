"""API Layer — FastAPI routes and request dependencies.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses (CSV export excepted)

Design Decisions:
    - Thin routes delegate to services (ADR: ExMA impureim sandwich)
    - Denied moderation decisions are 403 bodies, not exceptions: the audit row
      they produced must still commit
"""
