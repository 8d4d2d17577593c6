"""Membership, join-request and role-change schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from studio_app.models.enums import MembershipRole, MembershipStatus
from studio_app.services.memberships import MembershipAction


class MembershipResponse(BaseModel):
    id: uuid.UUID
    studio_id: uuid.UUID
    user_id: uuid.UUID
    role: MembershipRole
    status: MembershipStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class JoinRequestCreate(BaseModel):
    invite_token: str = Field(..., max_length=256)

    @field_validator("invite_token")
    @classmethod
    def strip_token(cls, v: str) -> str:
        # An empty token is answered as an invalid invite, not a validation error
        return v.strip()


class JoinRequestResponse(BaseModel):
    membership_id: uuid.UUID
    status: MembershipStatus
    studio_id: uuid.UUID


class RequesterInfo(BaseModel):
    name: str | None = None
    email: str | None = None


class PendingRequestResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    status: MembershipStatus
    created_at: datetime
    user: RequesterInfo


class MembershipDecisionRequest(BaseModel):
    membership_id: uuid.UUID
    action: MembershipAction


class MembershipDecisionResponse(BaseModel):
    membership_id: uuid.UUID
    status: MembershipStatus
    message: str


class RoleChangeRequest(BaseModel):
    membership_id: uuid.UUID
    role: MembershipRole


class RoleChangeResponse(BaseModel):
    membership_id: uuid.UUID
    role: MembershipRole
    changed: bool
    message: str
