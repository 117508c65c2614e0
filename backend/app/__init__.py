"""TaskBoard Application Package — projects, members, invitations and task boards.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
