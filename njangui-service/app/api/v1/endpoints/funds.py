"""
Fund API endpoints.

- GET    /funds          — List all funds (newest first)
- POST   /funds          — Create a new fund (name must be unique)
- GET    /funds/{id}     — Retrieve a specific fund
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.fund import Fund
from app.repositories.fund_repo import FundRepository
from app.schemas.common import ErrorResponse, SuccessResponse, ValidationErrorResponse
from app.schemas.fund import FundCreate, FundResponse
from app.services.fund_service import FundService

router = APIRouter()


# ── Dependency injection ──
# A fresh service per request, wired to that request's DB session.  Tests
# swap this dependency out via ``app.dependency_overrides``.


def _get_fund_service(db: AsyncSession = Depends(get_db)) -> FundService:
    """Build a FundService wired to the current request's DB session."""
    return FundService(FundRepository(Fund, db))


# ── Endpoints ──


@router.get(
    "",
    response_model=SuccessResponse[List[FundResponse]],
    summary="List all funds",
    description="Returns every fund, most recently created first.",
    responses={500: {"model": ErrorResponse, "description": "Database failure"}},
)
async def list_funds(service: FundService = Depends(_get_fund_service)):
    return {"success": True, "data": await service.get_all_funds()}


@router.post(
    "",
    response_model=SuccessResponse[FundResponse],
    status_code=201,
    summary="Create a new fund",
    description=(
        "Creates a fund.  The name must be unique; a 400 is returned if a "
        "fund with the same name already exists."
    ),
    responses={
        400: {"model": ValidationErrorResponse, "description": "Duplicate name or invalid body"},
        500: {"model": ErrorResponse, "description": "Database failure"},
    },
)
async def create_fund(
    fund: FundCreate,
    service: FundService = Depends(_get_fund_service),
):
    return {"success": True, "data": await service.create_fund(fund)}


@router.get(
    "/{fund_id}",
    response_model=SuccessResponse[FundResponse],
    summary="Get a specific fund",
    description="Retrieve a single fund by its UUID.",
    responses={
        404: {"model": ErrorResponse, "description": "Fund not found"},
        500: {"model": ErrorResponse, "description": "Database failure"},
    },
)
async def get_fund(
    fund_id: UUID,
    service: FundService = Depends(_get_fund_service),
):
    return {"success": True, "data": await service.get_fund(fund_id)}
