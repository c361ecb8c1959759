# models/permission.py
"""
Permission model - a grant edge from a patient to a doctor.

A live edge lets the doctor author clinical updates for the patient.
Only the patient creates or removes it; at most one edge exists per pair.
"""
from sqlalchemy import Column, String, BigInteger, ForeignKey, UniqueConstraint
from .base import Base, new_id, now_millis


class Permission(Base):
     __table_args__ = (
          UniqueConstraint("patient_id", "doctor_id", name="uq_permissions_patient_doctor"),
     )

     id = Column(String(36), primary_key=True, default=new_id)
     patient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     doctor_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     granted_at = Column(BigInteger, default=now_millis, nullable=False)

     def __repr__(self):
          return f"<Permission(patient_id={self.patient_id}, doctor_id={self.doctor_id})>"
