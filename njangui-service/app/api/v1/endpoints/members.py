"""
Member API endpoints.

- GET    /members         — List all members (newest first)
- POST   /members         — Register a new member (phone number must be unique)
- GET    /members/{id}    — Retrieve a specific member
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.member import Member
from app.repositories.member_repo import MemberRepository
from app.schemas.common import ErrorResponse, SuccessResponse, ValidationErrorResponse
from app.schemas.member import MemberCreate, MemberResponse
from app.services.member_service import MemberService

router = APIRouter()


# ── Dependency injection ──


def _get_member_service(db: AsyncSession = Depends(get_db)) -> MemberService:
    """Build a MemberService wired to the current request's DB session."""
    return MemberService(MemberRepository(Member, db))


# ── Endpoints ──


@router.get(
    "",
    response_model=SuccessResponse[List[MemberResponse]],
    summary="List all members",
    description="Returns every member, most recently registered first.",
    responses={500: {"model": ErrorResponse, "description": "Database failure"}},
)
async def list_members(service: MemberService = Depends(_get_member_service)):
    return {"success": True, "data": await service.get_all_members()}


@router.post(
    "",
    response_model=SuccessResponse[MemberResponse],
    status_code=201,
    summary="Register a new member",
    description=(
        "Registers a member.  The phone number must be unique; a 400 is "
        "returned if it is already in use."
    ),
    responses={
        400: {"model": ValidationErrorResponse, "description": "Duplicate phone number or invalid body"},
        500: {"model": ErrorResponse, "description": "Database failure"},
    },
)
async def create_member(
    member: MemberCreate,
    service: MemberService = Depends(_get_member_service),
):
    return {"success": True, "data": await service.create_member(member)}


@router.get(
    "/{member_id}",
    response_model=SuccessResponse[MemberResponse],
    summary="Get a specific member",
    description="Retrieve a single member by UUID.",
    responses={
        404: {"model": ErrorResponse, "description": "Member not found"},
        500: {"model": ErrorResponse, "description": "Database failure"},
    },
)
async def get_member(
    member_id: UUID,
    service: MemberService = Depends(_get_member_service),
):
    return {"success": True, "data": await service.get_member(member_id)}
