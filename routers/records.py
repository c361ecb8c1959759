# routers/records.py
"""
Clinical record API routes.

- Patients upload reports (optional file attachment)
- Doctors with a live grant add updates
- The patient and granted doctors read the history and download files
"""
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from blob_store import BlobStore, get_blob_store
from database import get_session
from dependencies import get_current_actor
from errors import Forbidden
from models import User, UserRole
from schemas.record import DoctorUpdateCreate, RecordResponse
from services.permission_service import PermissionService
from services.record_service import RecordService

router = APIRouter(prefix="/api/records", tags=["records"])


@router.post(
     "/reports",
     response_model=RecordResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Upload a medical report"
)
async def upload_report(
     title: str = Form(..., min_length=1, max_length=255),
     file: Optional[UploadFile] = File(None),
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor),
     blob_store: BlobStore = Depends(get_blob_store)
):
     """
     The file is stored before the record is created, and the record before
     its ledger block.
     """
     if actor.role != UserRole.PATIENT:
          raise Forbidden("Only the patient can add their report")

     file_ref = None
     if file is not None and file.filename:
          file_ref = await blob_store.put(await file.read(), filename=file.filename)

     return await RecordService.add_report(
          db, actor, actor.id, title, file_ref=file_ref, blob_store=blob_store
     )


@router.post(
     "/updates",
     response_model=RecordResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Add a doctor update"
)
async def add_update(
     body: DoctorUpdateCreate,
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor)
):
     return await RecordService.add_doctor_update(db, actor, actor.id, body.patient_id, body.note)


@router.get(
     "/patients/{patient_id}",
     response_model=List[RecordResponse],
     summary="A patient's record history"
)
async def get_history(
     patient_id: str,
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor)
):
     await PermissionService.ensure_can_view(db, actor, patient_id)
     return await RecordService.get_history(db, patient_id)


@router.get("/{record_id}/file", summary="Download a report attachment")
async def download_file(
     record_id: str,
     db: AsyncSession = Depends(get_session),
     actor: User = Depends(get_current_actor),
     blob_store: BlobStore = Depends(get_blob_store)
):
     record, data = await RecordService.get_record_file(db, actor, record_id, blob_store)
     filename = f"{record.id}{os.path.splitext(record.file_id)[1]}"
     return Response(
          content=data,
          media_type="application/octet-stream",
          headers={"Content-Disposition": f'attachment; filename="{filename}"'},
     )
