"""Core Layer — pure settings and permission logic, no IO, no async.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or migrations/
    - Functions operate on plain dicts/lists and return new values or outcomes
"""
