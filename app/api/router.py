"""
Main API router
"""
from fastapi import APIRouter

from app.api.v1 import (
    health,
    leaves,
    approvers,
    notifications,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(leaves.router, prefix="/leaves", tags=["leaves"])
api_router.include_router(approvers.router, prefix="/approvers", tags=["approvers"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
