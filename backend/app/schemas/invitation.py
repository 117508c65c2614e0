"""Invitation Schemas — send and respond payloads."""

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import InvitableRole, InvitationResponse
from app.schemas.user import EMAIL_PATTERN


class InvitationCreate(BaseModel):
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    role: InvitableRole = InvitableRole.MEMBER
    message: str | None = Field(None, max_length=200)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None


class InvitationRespond(BaseModel):
    response: InvitationResponse
