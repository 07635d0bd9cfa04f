"""Services Layer — orchestration of authorize -> ladder -> audit around the pure core.

Invariants:
    - Every moderation outcome, applied or denied, leaves exactly one audit entry
    - A denied decision never writes sanction or moderator state
    - Each public write method commits once; failures roll back as a unit

Design Decisions:
    - One service class per concern (ADR: ExMA no god objects)
    - Per-key locks around read-compute-write sequences (infrastructure/key_locks.py)
"""
