"""Shared schema types: problem+json error responses."""

from pydantic import BaseModel

from studio_app.schemas.invite import JoinLimitResponse


class ErrorResponse(BaseModel):
    type: str
    title: str
    status: int
    detail: str | dict | list
    instance: str
    kind: str | None = None
    membership_status: str | None = None
    studio_id: str | None = None
    join_limit: JoinLimitResponse | None = None


PROBLEM_RESPONSES: dict = {
    status: {"model": ErrorResponse, "content": {"application/problem+json": {}}}
    for status in (400, 401, 403, 404, 409, 429, 503)
}
