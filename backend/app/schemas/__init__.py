"""API Schemas — Pydantic v2 request models for the /api/v1 surface.

Invariants:
    - Schemas validate shape and bounds only; policy and state rules live in core/
    - Partial updates expose model_fields_set so omission differs from null
"""
