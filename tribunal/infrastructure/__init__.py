"""Infrastructure Layer — database sessions, repositories, locks, logging.

Invariants:
    - Implements the Protocols in core/repository_protocols.py
    - Translates ORM rows <-> core records; core never sees SQLAlchemy objects

Design Decisions:
    - Imperative shell around the functional core (ADR: ExMA impureim sandwich)
"""
