# schemas/ledger.py
"""
Pydantic schemas for ledger blocks and chain verification.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class PayloadTypeEnum(str, Enum):
     GENESIS = "genesis"
     REPORT = "report"
     UPDATE = "update"
     ACCESS_GRANTED = "access-granted"
     ACCESS_REVOKED = "access-revoked"


class BlockResponse(BaseModel):
     id: str
     patient_id: str
     index: int
     prev_hash: str
     hash: str
     timestamp: int = Field(..., description="Epoch milliseconds")
     payload_type: PayloadTypeEnum
     payload_ref: Optional[str] = None
     author_id: str
     author_name: str

     model_config = ConfigDict(from_attributes=True)


class ChainFailureResponse(BaseModel):
     index: int
     reason: str

     model_config = ConfigDict(from_attributes=True)


class ChainVerificationResponse(BaseModel):
     """Result of verifying one patient's chain."""
     patient_id: str
     ok: bool
     blocks_checked: int
     failures: List[ChainFailureResponse]

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "patient_id": "3f0b6c1e-0d7e-4a52-9a3c-2f1e8b7d9c10",
                    "ok": False,
                    "blocks_checked": 5,
                    "failures": [{"index": 3, "reason": "Hash mismatch"}],
               }
          }
     )
