# models/block.py
"""
Block model - one immutable, hash-linked ledger entry.

Each patient owns one chain. hash = SHA-256 of
prev_hash|content_hash|timestamp|author_id|index, and prev_hash points at
the hash of the block with index - 1 ("GENESIS" for index 0).
The (patient_id, index) unique constraint rejects a second writer that
raced for the same index. Rows are never updated or deleted.
"""
import enum
from sqlalchemy import Column, Integer, String, BigInteger, Enum, UniqueConstraint
from .base import Base, new_id


class PayloadType(str, enum.Enum):
     """Domain events recorded on the ledger."""
     GENESIS = "genesis"
     REPORT = "report"
     UPDATE = "update"
     ACCESS_GRANTED = "access-granted"
     ACCESS_REVOKED = "access-revoked"


class Block(Base):
     __table_args__ = (
          UniqueConstraint("patient_id", "index", name="uq_blocks_patient_index"),
     )

     id = Column(String(36), primary_key=True, default=new_id)
     patient_id = Column(String(36), nullable=False, index=True)
     index = Column(Integer, nullable=False)
     prev_hash = Column(String(64), nullable=False)  # "GENESIS" for index 0
     hash = Column(String(64), nullable=False, index=True)  # SHA-256 hex length
     timestamp = Column(BigInteger, nullable=False)  # epoch milliseconds
     payload_type = Column(
          Enum(
               PayloadType,
               name="payload_type",
               create_constraint=True,
               values_callable=lambda e: [m.value for m in e],
          ),
          nullable=False
     )
     payload_ref = Column(String(255), nullable=True)
     author_id = Column(String(36), nullable=False)
     author_name = Column(String(200), nullable=False)

     def __repr__(self):
          return f"<Block(patient_id={self.patient_id}, index={self.index}, hash={self.hash[:16]}...)>"
