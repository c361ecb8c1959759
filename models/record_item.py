# models/record_item.py
import enum
from sqlalchemy import Column, String, BigInteger, Enum, ForeignKey
from .base import Base, new_id, now_millis


class RecordType(str, enum.Enum):
     """Kinds of clinical artifacts."""
     REPORT = "report"
     UPDATE = "update"


class RecordItem(Base):
     """
     RecordItem model - a clinical artifact in a patient's history.

     Reports are written by the patient, updates by a doctor holding a live
     grant. author_name is denormalized for display. Rows are append-only.
     """

     id = Column(String(36), primary_key=True, default=new_id)
     patient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
     author_name = Column(String(200), nullable=False)
     type = Column(
          Enum(
               RecordType,
               name="record_type",
               create_constraint=True,
               values_callable=lambda e: [m.value for m in e],
          ),
          nullable=False
     )
     title = Column(String(255), nullable=False)
     file_id = Column(String(255), nullable=True)  # Opaque blob store reference
     created_at = Column(BigInteger, default=now_millis, nullable=False, index=True)

     def __repr__(self):
          return f"<RecordItem(id={self.id}, type='{self.type.value}', title='{self.title}')>"
