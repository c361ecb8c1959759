# services/permission_service.py
"""
Permission Graph - patient -> doctor access grants.

Grant and revoke are patient-only actions and both append a ledger block
on every call, whether or not the edge changed state:
- a repeated grant keeps the single existing edge and logs it again
- a revoke without an edge is a no-op on the graph but is still logged
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from errors import Forbidden, NotFound, StorageError, Unauthorized
from models import PayloadType, Permission, User, UserRole, now_millis
from services.ledger_service import append_block

logger = logging.getLogger(__name__)


def _require_patient(actor: Optional[User], patient_id: str) -> None:
     if actor is None or actor.id != patient_id or actor.role != UserRole.PATIENT:
          raise Forbidden("Only the patient can manage access to their records")


class PermissionService:
     """Service class for the grant edges between patients and doctors."""

     @staticmethod
     async def get_edge(db: AsyncSession, patient_id: str, doctor_id: str) -> Optional[Permission]:
          result = await db.execute(
               select(Permission).where(
                    Permission.patient_id == patient_id,
                    Permission.doctor_id == doctor_id
               )
          )
          return result.scalars().first()

     @staticmethod
     async def is_granted(db: AsyncSession, patient_id: str, doctor_id: str) -> bool:
          return await PermissionService.get_edge(db, patient_id, doctor_id) is not None

     @staticmethod
     async def list_for_patient(db: AsyncSession, patient_id: str) -> List[Permission]:
          result = await db.execute(
               select(Permission)
               .where(Permission.patient_id == patient_id)
               .order_by(Permission.granted_at)
          )
          return list(result.scalars().all())

     @staticmethod
     async def list_for_doctor(db: AsyncSession, doctor_id: str) -> List[Permission]:
          result = await db.execute(
               select(Permission)
               .where(Permission.doctor_id == doctor_id)
               .order_by(Permission.granted_at)
          )
          return list(result.scalars().all())

     @staticmethod
     async def grant(db: AsyncSession, actor: Optional[User], patient_id: str, doctor_id: str) -> Permission:
          """
          Grant a doctor access to the patient's records.

          Raises:
               Forbidden: If the actor is not the patient
               NotFound: If doctor_id is not a doctor account
          """
          _require_patient(actor, patient_id)
          actor_id = actor.id
          doctor = await db.get(User, doctor_id)
          if doctor is None or doctor.role != UserRole.DOCTOR:
               raise NotFound(f"Doctor {doctor_id} not found")

          edge = await PermissionService.get_edge(db, patient_id, doctor_id)
          if edge is None:
               edge = Permission(patient_id=patient_id, doctor_id=doctor_id, granted_at=now_millis())
               db.add(edge)
               try:
                    await db.commit()
                    logger.info(f"Access granted: patient {patient_id} -> doctor {doctor_id}")
               except IntegrityError:
                    # A concurrent grant created the edge first; keep that one
                    await db.rollback()
                    edge = await PermissionService.get_edge(db, patient_id, doctor_id)
                    if edge is None:
                         raise StorageError("Could not record access grant")
                    logger.info(f"Access already granted: patient {patient_id} -> doctor {doctor_id}")
          else:
               logger.info(f"Access already granted: patient {patient_id} -> doctor {doctor_id}")

          await append_block(
               db,
               patient_id=patient_id,
               payload_type=PayloadType.ACCESS_GRANTED,
               payload_ref=edge.id,
               author_id=actor_id,
          )
          return edge

     @staticmethod
     async def revoke(db: AsyncSession, actor: Optional[User], patient_id: str, doctor_id: str) -> bool:
          """
          Revoke a doctor's access. Returns True if an edge was removed.

          Raises:
               Forbidden: If the actor is not the patient
          """
          _require_patient(actor, patient_id)
          result = await db.execute(
               delete(Permission).where(
                    Permission.patient_id == patient_id,
                    Permission.doctor_id == doctor_id
               )
          )
          removed = result.rowcount > 0
          await db.commit()
          logger.info(f"Access revoked: patient {patient_id} -> doctor {doctor_id} (edge removed: {removed})")

          await append_block(
               db,
               patient_id=patient_id,
               payload_type=PayloadType.ACCESS_REVOKED,
               payload_ref=f"{patient_id}:{doctor_id}",
               author_id=actor.id,
          )
          return removed

     @staticmethod
     async def list_counterparts(db: AsyncSession, actor: Optional[User]) -> List[User]:
          """
          Doctors a patient has granted, or patients who granted a doctor.
          """
          if actor is None:
               return []
          if actor.role == UserRole.PATIENT:
               edges = await PermissionService.list_for_patient(db, actor.id)
               ids = [e.doctor_id for e in edges]
          else:
               edges = await PermissionService.list_for_doctor(db, actor.id)
               ids = [e.patient_id for e in edges]
          users = [await db.get(User, user_id) for user_id in ids]
          return [u for u in users if u is not None]

     @staticmethod
     async def ensure_can_view(db: AsyncSession, actor: Optional[User], patient_id: str) -> None:
          """
          Read gate for a patient's history and ledger: the patient, or a
          doctor with a live grant.

          Raises:
               Forbidden: If there is no actor or the actor is another patient
               Unauthorized: If the actor is a doctor without a grant
          """
          if actor is None:
               raise Forbidden("Sign in to view records")
          if actor.id == patient_id:
               return
          if actor.role != UserRole.DOCTOR:
               raise Forbidden("Patients can only view their own records")
          if not await PermissionService.is_granted(db, patient_id, actor.id):
               raise Unauthorized("No access to this patient")
