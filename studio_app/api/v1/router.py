"""Aggregate all v1 sub-routers."""

from fastapi import APIRouter

from studio_app.api.v1.health import router as health_router
from studio_app.api.v1.invites import router as invites_router
from studio_app.api.v1.me import router as me_router
from studio_app.api.v1.studio_admin import router as studio_admin_router
from studio_app.api.v1.studios import router as studios_router
from studio_app.api.v1.super_admin import router as super_admin_router
from studio_app.schemas.common import PROBLEM_RESPONSES

api_v1_router = APIRouter()

api_v1_router.include_router(health_router, tags=["health"])
api_v1_router.include_router(me_router, tags=["me"], responses=PROBLEM_RESPONSES)
api_v1_router.include_router(
    studios_router, prefix="/studios", tags=["studios"], responses=PROBLEM_RESPONSES
)
api_v1_router.include_router(invites_router, tags=["invites"], responses=PROBLEM_RESPONSES)
api_v1_router.include_router(
    studio_admin_router,
    prefix="/studio-admin",
    tags=["studio-admin"],
    responses=PROBLEM_RESPONSES,
)
api_v1_router.include_router(
    super_admin_router,
    prefix="/super-admin",
    tags=["super-admin"],
    responses=PROBLEM_RESPONSES,
)
