# services/record_service.py
"""
Record Authoring - reports and doctor updates.

Write order is always: blob (if any) -> record row -> ledger block.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blob_store import BlobStore
from errors import Forbidden, NotFound, Unauthorized
from models import PayloadType, RecordItem, RecordType, User, UserRole, now_millis
from services.ledger_service import append_block
from services.permission_service import PermissionService

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 120  # UTF-16 code units


def _truncate_utf16(text: str, limit: int) -> str:
     """
     First `limit` UTF-16 code units of text, as client-side string slicing
     counts them. A surrogate pair split by the cut is dropped whole.
     """
     encoded = text.encode("utf-16-le", errors="surrogatepass")
     if len(encoded) <= limit * 2:
          return text
     return encoded[:limit * 2].decode("utf-16-le", errors="ignore")


class RecordService:
     """Service class for clinical record authoring."""

     @staticmethod
     async def add_report(
          db: AsyncSession,
          actor: Optional[User],
          patient_id: str,
          title: str,
          file_ref: Optional[str] = None,
          blob_store: Optional[BlobStore] = None
     ) -> RecordItem:
          """
          Add a patient-authored report.

          Args:
               db: SQLAlchemy async session
               actor: The acting user (must be the patient)
               patient_id: Subject of the report
               title: Report title
               file_ref: Reference of an already-stored blob
               blob_store: Store that file_ref must exist in

          Returns:
               Created RecordItem

          Raises:
               Forbidden: If the actor is not the patient
               NotFound: If file_ref is not in the blob store
          """
          if actor is None or actor.id != patient_id or actor.role != UserRole.PATIENT:
               raise Forbidden("Only the patient can add their report")

          if file_ref is not None:
               if blob_store is None or not await blob_store.exists(file_ref):
                    raise NotFound(f"File {file_ref} has not been stored")

          record = RecordItem(
               patient_id=patient_id,
               author_id=actor.id,
               author_name=actor.name,
               type=RecordType.REPORT,
               title=title,
               file_id=file_ref,
               created_at=now_millis(),
          )
          db.add(record)
          await db.commit()

          await append_block(
               db,
               patient_id=patient_id,
               payload_type=PayloadType.REPORT,
               payload_ref=record.id,
               author_id=actor.id,
          )
          logger.info(f"Report {record.id} added for patient {patient_id}")
          return record

     @staticmethod
     async def add_doctor_update(
          db: AsyncSession,
          actor: Optional[User],
          doctor_id: str,
          patient_id: str,
          note: str
     ) -> RecordItem:
          """
          Add a clinical update written by a doctor holding a live grant.

          The record title is the note truncated to MAX_TITLE_LENGTH UTF-16 code units.

          Raises:
               Forbidden: If the actor is not the named doctor
               Unauthorized: If the doctor has no access to the patient
          """
          if actor is None or actor.id != doctor_id or actor.role != UserRole.DOCTOR:
               raise Forbidden("Only the doctor can add updates")

          if not await PermissionService.is_granted(db, patient_id, doctor_id):
               logger.warning(f"Doctor {doctor_id} has no access to patient {patient_id}")
               raise Unauthorized("No access to this patient")

          record = RecordItem(
               patient_id=patient_id,
               author_id=actor.id,
               author_name=actor.name,
               type=RecordType.UPDATE,
               title=_truncate_utf16(note, MAX_TITLE_LENGTH),
               created_at=now_millis(),
          )
          db.add(record)
          await db.commit()

          await append_block(
               db,
               patient_id=patient_id,
               payload_type=PayloadType.UPDATE,
               payload_ref=record.id,
               author_id=actor.id,
          )
          logger.info(f"Update {record.id} added for patient {patient_id} by doctor {doctor_id}")
          return record

     @staticmethod
     async def get_history(db: AsyncSession, patient_id: str) -> List[RecordItem]:
          """A patient's records, oldest first."""
          result = await db.execute(
               select(RecordItem)
               .where(RecordItem.patient_id == patient_id)
               .order_by(RecordItem.created_at)
          )
          return list(result.scalars().all())

     @staticmethod
     async def get_record_file(
          db: AsyncSession,
          actor: Optional[User],
          record_id: str,
          blob_store: BlobStore
     ) -> Tuple[RecordItem, bytes]:
          """
          Download the blob attached to a report.

          Raises:
               NotFound: Unknown record, no attachment, or blob missing
               Forbidden / Unauthorized: If the actor may not view the patient
          """
          record = await db.get(RecordItem, record_id)
          if record is None:
               raise NotFound(f"Record {record_id} not found")
          await PermissionService.ensure_can_view(db, actor, record.patient_id)

          if not record.file_id:
               raise NotFound("Record has no attached file")
          data = await blob_store.get(record.file_id)
          if data is None:
               raise NotFound("Attached file is missing from storage")
          return record, data
