"""User profile schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel

from studio_app.models.enums import GlobalRole
from studio_app.schemas.membership import MembershipResponse


class ProfileResponse(BaseModel):
    id: uuid.UUID
    external_id: str
    name: str | None = None
    email: str | None = None
    global_role: GlobalRole
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProfileSummary(BaseModel):
    id: uuid.UUID
    external_id: str
    name: str | None = None
    email: str | None = None

    model_config = {"from_attributes": True}


class MeResponse(BaseModel):
    profile: ProfileResponse
    membership: MembershipResponse | None = None
