"""Services Layer — one service per aggregate, each owning its transaction boundary.

Invariants:
    - Services commit; repositories only flush
    - Policy checks run through AccessService before any write
    - Services return view dicts, never ORM objects

Design Decisions:
    - Constructor injection (db, repos, settings, clock) so tests pass a fixed clock
"""
