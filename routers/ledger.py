# routers/ledger.py
"""
Ledger API routes: read a patient's chain and verify it.
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_session
from dependencies import get_current_actor
from models import User
from schemas.ledger import BlockResponse, ChainFailureResponse, ChainVerificationResponse
from services.ledger_service import get_chain, verify_chain
from services.permission_service import PermissionService

router = APIRouter(prefix="/api/ledger", tags=["ledger"])


@router.get("/{patient_id}", response_model=List[BlockResponse], summary="A patient's ledger chain")
async def get_ledger(
     patient_id: str,
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor)
):
     await PermissionService.ensure_can_view(db, actor, patient_id)
     return await get_chain(db, patient_id)


@router.get(
     "/{patient_id}/verify",
     response_model=ChainVerificationResponse,
     summary="Verify a patient's ledger chain"
)
async def verify_ledger(
     patient_id: str,
     strict: bool = Query(True, description="Also recompute each block's own hash"),
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor)
):
     """
     Always returns 200: a broken chain is reported in `failures`, with
     one entry per tampered block.
     """
     await PermissionService.ensure_can_view(db, actor, patient_id)
     blocks = await get_chain(db, patient_id)
     result = verify_chain(blocks, strict=strict)
     return ChainVerificationResponse(
          patient_id=patient_id,
          ok=result.ok,
          blocks_checked=len(blocks),
          failures=[ChainFailureResponse.model_validate(f) for f in result.failures],
     )
