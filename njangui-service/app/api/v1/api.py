"""
V1 API router aggregation.

All versioned endpoint routers are mounted here under a common prefix.
The top-level ``main.py`` mounts this router at ``/api/v1``.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import funds, members

api_router = APIRouter()

api_router.include_router(funds.router, prefix="/funds", tags=["Funds"])
api_router.include_router(members.router, prefix="/members", tags=["Members"])
