"""Invite link and join-limit schemas."""

from datetime import datetime

from pydantic import BaseModel


class InviteResponse(BaseModel):
    invite_token: str
    invite_url: str
    invite_token_created_at: datetime

    model_config = {"from_attributes": True}


class JoinLimitResponse(BaseModel):
    recent_count: int
    daily_limit: int
    window_ms: int
    limit_reached: bool

    model_config = {"from_attributes": True}
