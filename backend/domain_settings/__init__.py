"""Domain Settings — settings and authorization registry for a domain server.

Invariants:
    - Package root has no import side-effects
"""

__version__ = "1.5.0"
