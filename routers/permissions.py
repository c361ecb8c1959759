# routers/permissions.py
"""
Access grant API routes.

The acting patient grants or revokes a doctor; both actions are logged on
the patient's ledger chain.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_session
from dependencies import get_current_actor
from models import User
from schemas.permission import CounterpartListResponse, PermissionResponse, RevokeResponse
from schemas.user import UserResponse
from services.permission_service import PermissionService

router = APIRouter(prefix="/api/permissions", tags=["permissions"])


@router.get("", response_model=CounterpartListResponse, summary="My doctors or my patients")
async def list_my_permissions(
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor)
):
     users = await PermissionService.list_counterparts(db, actor)
     return CounterpartListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.post(
     "/{doctor_id}",
     response_model=PermissionResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Grant a doctor access"
)
async def grant_access(
     doctor_id: str,
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor)
):
     return await PermissionService.grant(db, actor, actor.id, doctor_id)


@router.delete("/{doctor_id}", response_model=RevokeResponse, summary="Revoke a doctor's access")
async def revoke_access(
     doctor_id: str,
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor)
):
     removed = await PermissionService.revoke(db, actor, actor.id, doctor_id)
     return RevokeResponse(patient_id=actor.id, doctor_id=doctor_id, removed=removed)
