# routers/users.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_session
from dependencies import get_current_actor
from models import User
from schemas.user import RoleEnum, UserResponse
from services.account_service import AccountService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[UserResponse], summary="List doctors or patients")
async def list_users(
     role: RoleEnum = Query(..., description="patient or doctor"),
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor)
):
     return await AccountService.list_by_role(db, role.value)
