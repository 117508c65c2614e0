"""Infrastructure Layer — persistence, repositories and cross-cutting concerns.

Invariants:
    - Infrastructure implements core/repository_protocols.py; core never imports it
    - Every DB error is mapped to core.errors.DatabaseError at the session boundary
"""
