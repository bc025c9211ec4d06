from fastapi import APIRouter

from adminos.api.v1 import users, workflows

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(workflows.router, prefix="/workflows", tags=["approval-workflows"])
