"""Migration steps — one module per settings schema version.

Invariants:
    - Each module exposes `version: float`, `description: str`, `upgrade(ctx) -> bool`
    - upgrade() is idempotent and returns True only when it changed the user config
"""
