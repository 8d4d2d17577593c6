"""Studio request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from studio_app.models.enums import MembershipRole, MembershipStatus
from studio_app.schemas.membership import MembershipResponse
from studio_app.schemas.profile import ProfileSummary


class StudioCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    join_password: str | None = Field(None, min_length=8, max_length=128)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Studio name is required.")
        return v


class StudioResponse(BaseModel):
    id: uuid.UUID
    name: str
    owner_id: uuid.UUID
    invite_token_created_at: datetime
    join_password_updated_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class StudioCreateResponse(BaseModel):
    studio: StudioResponse
    membership: MembershipResponse
    invite_url: str


class JoinPasswordResponse(BaseModel):
    studio_id: uuid.UUID
    name: str
    join_password: str
    join_password_updated_at: datetime


class StudioMembershipDetail(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    role: MembershipRole
    status: MembershipStatus
    created_at: datetime
    user: ProfileSummary

    model_config = {"from_attributes": True}


class StudioDetail(BaseModel):
    id: uuid.UUID
    name: str
    created_at: datetime
    owner: ProfileSummary
    memberships: list[StudioMembershipDetail]

    model_config = {"from_attributes": True}
