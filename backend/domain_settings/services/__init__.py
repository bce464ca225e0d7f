"""Services Layer — stateful orchestration around the pure core.

Invariants:
    - All mutation of registry/store state happens on the owning event loop
"""
